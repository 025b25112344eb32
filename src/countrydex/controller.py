#!/usr/bin/env python3
"""
countrydex.controller – the lookup table's state machine

The controller owns the single QueryState and is the only thing that
mutates it: text input, fetch resolution, sort-column clicks and page
navigation. Sorted rows and page controls are derived on every `view()`.
"""

import logging
from typing import Any, Callable, List, Optional

from . import pager
from .debounce import Debouncer
from .fetcher import CountryFetcher, FetchError
from .models import SORT_DIRECTIONS, SORT_SPECS, Phase, QueryState, Record, TableView
from .sorting import sort_records, toggle_direction

LOGGER = logging.getLogger(__name__)

START_MESSAGE = "Start searching"
NO_RESULTS_MESSAGE = "No results found"


class QueryController:
    def __init__(
        self,
        fetcher: CountryFetcher,
        debouncer: Optional[Debouncer] = None,
        page_size: int = pager.PAGE_SIZE,
        group_size: int = pager.GROUP_SIZE,
        drop_stale_responses: bool = False,
        on_change: Optional[Callable[[TableView], Any]] = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        if group_size < 1:
            raise ValueError("group_size must be at least 1")
        self.fetcher = fetcher
        self.debouncer = debouncer
        self.page_size = page_size
        self.group_size = group_size
        self.drop_stale_responses = drop_stale_responses
        self.on_change = on_change
        self.state = QueryState()
        self.last_error: Optional[FetchError] = None
        self._request_seq = 0
        self._in_flight = 0

    # ------------------------------------------------------------------ #
    # derived state                                                      #
    # ------------------------------------------------------------------ #

    @property
    def phase(self) -> Phase:
        if not self.state.query_text.strip():
            return Phase.IDLE
        if self.state.loading:
            return Phase.LOADING
        if self.debouncer is not None and self.debouncer.pending:
            return Phase.DEBOUNCING
        return Phase.READY

    @property
    def total_pages(self) -> int:
        return pager.total_pages(len(self.state.records), self.page_size)

    def sorted_records(self) -> List[Record]:
        return sort_records(
            self.state.records, self.state.sort_spec.field, self.state.sort_direction
        )

    def view(self) -> TableView:
        state = self.state
        total = self.total_pages
        rows = pager.window(self.sorted_records(), state.page, self.page_size)

        message = None
        if state.query_text == "" and not rows:
            message = START_MESSAGE
        elif not rows and not state.loading:
            message = NO_RESULTS_MESSAGE

        return TableView(
            rows=rows,
            loading=state.loading,
            sort_spec=state.sort_spec,
            sort_direction=state.sort_direction,
            page_controls=(
                pager.controls(total, state.page, self.group_size) if rows else []
            ),
            has_prev=pager.has_prev(state.page),
            has_next=pager.has_next(state.page, total),
            page=state.page,
            total_pages=total,
            total_records=len(state.records),
            query_text=state.query_text,
            message=message,
        )

    def _changed(self) -> TableView:
        view = self.view()
        if self.on_change is not None:
            self.on_change(view)
        return view

    # ------------------------------------------------------------------ #
    # inbound events                                                     #
    # ------------------------------------------------------------------ #

    def on_text_change(self, text: str) -> TableView:
        self.state.query_text = text
        if text.strip():
            if self.debouncer is not None:
                self.debouncer.schedule(text)
        else:
            # Blank input never reaches the network.
            if self.debouncer is not None:
                self.debouncer.cancel()
            self._request_seq += 1
            self.state.records = []
            self.state.page = 1
        return self._changed()

    def on_sort_column_click(self, field: str) -> TableView:
        spec = SORT_SPECS.get(field)
        if spec is None:
            LOGGER.debug(f"Ignoring sort on unknown column {field!r}")
            return self.view()
        self.state.sort_spec = spec
        self.state.sort_direction = toggle_direction(self.state.sort_direction)
        return self._changed()

    def apply_sort(self, field: str, direction: str) -> TableView:
        """Set the sort outright instead of toggling it, as the CLI does."""
        spec = SORT_SPECS.get(field)
        if spec is None or direction not in SORT_DIRECTIONS:
            LOGGER.debug(f"Ignoring sort {field!r} {direction!r}")
            return self.view()
        self.state.sort_spec = spec
        self.state.sort_direction = direction
        return self._changed()

    def on_page_click(self, page: int) -> TableView:
        if not pager.is_valid_page(page, self.total_pages):
            return self.view()
        self.state.page = page
        return self._changed()

    def on_prev_click(self) -> TableView:
        return self.on_page_click(self.state.page - 1)

    def on_next_click(self) -> TableView:
        return self.on_page_click(self.state.page + 1)

    # ------------------------------------------------------------------ #
    # fetch lifecycle                                                    #
    # ------------------------------------------------------------------ #

    async def dispatch(self, query: str) -> TableView:
        """Run one lookup for `query` and apply its outcome."""
        self._request_seq += 1
        token = self._request_seq
        LOGGER.info(f"Dispatching lookup #{token} for '{query}'")
        self._in_flight += 1
        self.state.loading = True
        self._changed()

        records: List[Record] = []
        try:
            records = await self.fetcher.fetch(query)
            self.last_error = None
        except FetchError as e:
            LOGGER.warning(f"Lookup #{token} for '{query}' failed ({e.kind}): {e}")
            self.last_error = e
        finally:
            self._in_flight -= 1

        if self.drop_stale_responses and token != self._request_seq:
            LOGGER.debug(f"Dropping stale lookup #{token} for '{query}'")
            self.state.loading = self._in_flight > 0
            return self._changed()

        self.resolve(records)
        return self._changed()

    def resolve(self, records: List[Record]) -> None:
        self.state.loading = False
        self.state.records = list(records)
        self.state.page = 1
