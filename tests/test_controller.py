import asyncio

import pytest

from conftest import make_records, numbered_records
from countrydex.controller import (
    NO_RESULTS_MESSAGE,
    START_MESSAGE,
    QueryController,
)
from countrydex.debounce import Debouncer
from countrydex.fetcher import CountryFetcher, MalformedResponse, NetworkFailure
from countrydex.models import ASC, DEFAULT_SORT, DESC, GAP, Phase, Record


@pytest.fixture
def dispatched():
    return []


@pytest.fixture
def controller(clock, fake_fetcher, dispatched):
    debouncer = Debouncer(clock.set_timer, dispatched.append, delay=0.5)
    return QueryController(fake_fetcher, debouncer, page_size=10)


def test_initial_state(controller):
    state = controller.state
    assert state.query_text == ""
    assert state.records == []
    assert state.sort_spec == DEFAULT_SORT
    assert state.sort_direction == ASC
    assert state.page == 1
    assert state.loading is False
    assert controller.phase is Phase.IDLE

    view = controller.view()
    assert view.rows == []
    assert view.message == START_MESSAGE
    assert view.page_controls == []
    assert not view.has_prev
    assert not view.has_next


def test_text_change_updates_text_immediately_and_debounces(controller, clock, dispatched):
    for text in ["u", "un", "uni", "unit", "united"]:
        view = controller.on_text_change(text)
        assert view.query_text == text
        clock.advance(0.1)

    assert controller.phase is Phase.DEBOUNCING
    assert dispatched == []

    clock.advance(0.5)
    assert dispatched == ["united"]


def test_blank_text_never_fetches_and_clears_synchronously(controller, clock, dispatched):
    controller.resolve(make_records("France"))
    controller.on_text_change("fra")

    view = controller.on_text_change("   ")

    assert view.rows == []
    assert controller.state.records == []
    assert controller.phase is Phase.IDLE
    clock.advance(5)
    assert dispatched == []


def test_clearing_text_shows_start_message(controller):
    controller.on_text_change("peru")
    view = controller.on_text_change("")
    assert view.message == START_MESSAGE


@pytest.mark.asyncio
async def test_france_scenario(controller, fake_fetcher, clock, dispatched):
    fake_fetcher.results["france"] = make_records("France")
    controller.on_text_change("france")
    clock.advance(0.5)
    assert dispatched == ["france"]

    view = await controller.dispatch("france")

    assert fake_fetcher.calls == ["france"]
    assert [(r.name, r.rank) for r in view.rows] == [("France", 1)]
    assert view.page == 1
    assert view.page_controls == [1]
    assert GAP not in view.page_controls
    assert view.loading is False
    assert view.message is None
    assert controller.phase is Phase.READY


@pytest.mark.asyncio
async def test_united_scenario_has_three_pages(controller, fake_fetcher):
    fake_fetcher.results["united"] = numbered_records(23)
    controller.on_text_change("united")

    view = await controller.dispatch("united")

    assert view.total_pages == 3
    assert view.page_controls == [1, 2, 3]
    assert len(view.rows) == 10
    assert view.has_next and not view.has_prev


@pytest.mark.asyncio
async def test_forty_seven_records_single_group(controller, fake_fetcher):
    fake_fetcher.results["an"] = numbered_records(47)
    controller.on_text_change("an")
    await controller.dispatch("an")

    view = controller.on_page_click(3)

    assert view.total_pages == 5
    assert view.page == 3
    assert view.page_controls == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_many_pages_show_gaps_around_active_block(fake_fetcher):
    controller = QueryController(fake_fetcher, page_size=2)
    fake_fetcher.results["a"] = numbered_records(25)
    await controller.dispatch("a")

    view = controller.on_page_click(8)

    assert view.total_pages == 13
    assert view.page_controls == [GAP, 6, 7, 8, 9, 10, GAP]


@pytest.mark.asyncio
async def test_loading_is_set_while_fetch_is_in_flight(fake_fetcher):
    views = []
    controller = QueryController(fake_fetcher, on_change=views.append)
    gate = fake_fetcher.hold("chile")

    task = asyncio.create_task(controller.dispatch("chile"))
    await asyncio.sleep(0)

    assert controller.state.loading is True
    assert controller.phase is Phase.LOADING
    assert views[-1].loading is True

    gate.set()
    await task

    assert controller.state.loading is False
    assert views[-1].loading is False


@pytest.mark.asyncio
async def test_network_failure_shows_no_results(controller, fake_fetcher):
    fake_fetcher.results["france"] = make_records("France")
    fake_fetcher.results["fr"] = NetworkFailure("fr", "connection refused")
    await controller.dispatch("france")
    controller.on_text_change("fr")

    view = await controller.dispatch("fr")

    assert controller.state.records == []
    assert controller.state.loading is False
    assert view.rows == []
    assert view.message == NO_RESULTS_MESSAGE
    assert controller.last_error.kind == "network-failure"


@pytest.mark.asyncio
async def test_malformed_response_logs_its_kind(controller, fake_fetcher, caplog):
    fake_fetcher.results["x"] = MalformedResponse("x", "not a list")
    controller.on_text_change("x")

    with caplog.at_level("WARNING", logger="countrydex.controller"):
        view = await controller.dispatch("x")

    assert view.rows == []
    assert "malformed-response" in caplog.text


@pytest.mark.asyncio
async def test_new_fetch_resets_page_but_keeps_sort(controller, fake_fetcher):
    fake_fetcher.results["a"] = numbered_records(30)
    fake_fetcher.results["b"] = numbered_records(12)
    await controller.dispatch("a")
    controller.on_page_click(3)
    controller.on_sort_column_click("name")

    view = await controller.dispatch("b")

    assert view.page == 1
    assert view.sort_spec.field == "name"
    assert view.sort_direction == DESC
    assert view.rows[0].name == "Country 012"


@pytest.mark.asyncio
async def test_sort_click_flips_direction_without_resetting_page(controller, fake_fetcher):
    fake_fetcher.results["a"] = numbered_records(25)
    await controller.dispatch("a")
    controller.apply_sort("no", ASC)
    controller.on_page_click(2)

    view = controller.on_sort_column_click("no")

    assert view.sort_spec.field == "no"
    assert view.sort_direction == DESC
    assert view.page == 2
    assert [r.name for r in view.rows] == [f"Country {i:03d}" for i in range(15, 5, -1)]


def test_first_sort_click_from_default_flips_to_descending(controller):
    view = controller.on_sort_column_click("name")
    assert view.sort_direction == DESC
    view = controller.on_sort_column_click("no")
    assert view.sort_spec.label == "No."
    assert view.sort_direction == ASC


def test_unknown_sort_field_is_ignored(controller):
    view = controller.on_sort_column_click("flag")
    assert view.sort_spec == DEFAULT_SORT
    assert view.sort_direction == ASC


@pytest.mark.asyncio
async def test_page_navigation_bounds(controller, fake_fetcher):
    fake_fetcher.results["a"] = numbered_records(23)
    await controller.dispatch("a")

    assert controller.on_prev_click().page == 1
    assert controller.on_page_click(0).page == 1
    assert controller.on_page_click(4).page == 1
    assert controller.on_next_click().page == 2
    view = controller.on_next_click()
    assert view.page == 3
    assert not view.has_next
    assert controller.on_next_click().page == 3
    assert controller.on_prev_click().page == 2


@pytest.mark.asyncio
async def test_page_navigation_leaves_records_and_sort_alone(controller, fake_fetcher):
    fake_fetcher.results["a"] = numbered_records(23)
    await controller.dispatch("a")
    records = list(controller.state.records)

    controller.on_page_click(2)

    assert controller.state.records == records
    assert controller.state.sort_spec == DEFAULT_SORT


@pytest.mark.asyncio
async def test_last_resolved_response_wins_by_default(controller, fake_fetcher):
    fake_fetcher.results["ca"] = make_records("Canada", "Cameroon")
    fake_fetcher.results["can"] = make_records("Canada")
    slow = fake_fetcher.hold("ca")
    fast = fake_fetcher.hold("can")

    first = asyncio.create_task(controller.dispatch("ca"))
    second = asyncio.create_task(controller.dispatch("can"))
    await asyncio.sleep(0)
    fast.set()
    await second
    slow.set()
    await first

    assert [r.name for r in controller.state.records] == ["Canada", "Cameroon"]


@pytest.mark.asyncio
async def test_stale_responses_dropped_when_enabled(fake_fetcher):
    controller = QueryController(fake_fetcher, drop_stale_responses=True)
    fake_fetcher.results["ca"] = make_records("Canada", "Cameroon")
    fake_fetcher.results["can"] = make_records("Canada")
    slow = fake_fetcher.hold("ca")
    fast = fake_fetcher.hold("can")

    first = asyncio.create_task(controller.dispatch("ca"))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.dispatch("can"))
    await asyncio.sleep(0)
    fast.set()
    await second
    slow.set()
    await first

    assert [r.name for r in controller.state.records] == ["Canada"]
    assert controller.state.loading is False


@pytest.mark.asyncio
async def test_clearing_text_supersedes_in_flight_lookup_when_enabled(fake_fetcher):
    controller = QueryController(fake_fetcher, drop_stale_responses=True)
    fake_fetcher.results["peru"] = make_records("Peru")
    gate = fake_fetcher.hold("peru")

    task = asyncio.create_task(controller.dispatch("peru"))
    await asyncio.sleep(0)
    controller.on_text_change("")
    gate.set()
    await task

    assert controller.state.records == []
    assert controller.state.loading is False


def test_on_change_receives_a_view_per_mutation(fake_fetcher):
    views = []
    controller = QueryController(fake_fetcher, on_change=views.append)

    controller.on_text_change("")
    controller.on_sort_column_click("name")
    controller.on_page_click(1)

    assert len(views) == 2


def test_invalid_sizes_are_rejected(fake_fetcher):
    with pytest.raises(ValueError):
        QueryController(fake_fetcher, page_size=0)
    with pytest.raises(ValueError):
        QueryController(fake_fetcher, group_size=0)


def test_resolve_copies_records(controller):
    records = [Record("Fiji", "fj.svg", 1)]
    controller.resolve(records)
    records.append(Record("Tonga", "to.svg", 2))
    assert len(controller.state.records) == 1


@pytest.mark.asyncio
async def test_unparseable_endpoint_ends_loading_with_no_results():
    fetcher = CountryFetcher(endpoint="https://[::1/v3.1")
    controller = QueryController(fetcher)
    controller.on_text_change("france")

    view = await controller.dispatch("france")
    await fetcher.aclose()

    assert controller.state.loading is False
    assert controller.state.records == []
    assert view.message == NO_RESULTS_MESSAGE
    assert controller.last_error.kind == "network-failure"


@pytest.mark.asyncio
async def test_lookup_resolving_after_clear_hides_start_message(controller, fake_fetcher):
    fake_fetcher.results["peru"] = make_records("Peru")
    gate = fake_fetcher.hold("peru")

    task = asyncio.create_task(controller.dispatch("peru"))
    await asyncio.sleep(0)
    controller.on_text_change("")
    gate.set()
    await task

    view = controller.view()
    assert [r.name for r in view.rows] == ["Peru"]
    assert view.message is None
