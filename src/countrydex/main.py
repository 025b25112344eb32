import logging as log

from typing import Optional, Any

from textual import on, work
from textual.binding import Binding
from textual.logging import TextualHandler
from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import (
    Footer,
    Input,
    DataTable,
    Label,
    LoadingIndicator,
)

from .config import Settings, load_settings
from .controller import QueryController
from .debounce import Debouncer
from .fetcher import CountryFetcher
from .formatters import (
    FLAG_COLUMN_LABEL,
    column_label,
    format_row,
    format_subtitle,
    format_summary,
)
from .models import TableView
from .widgets import CustomHeader, PaginationBar

log.root.handlers.clear()
log.basicConfig(level=log.DEBUG, handlers=[TextualHandler()], force=True)


class countrydex(App):
    """Interactive country lookup table"""

    CSS_PATH = "tcss/main.tcss"
    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("ctrl+c", "quit", "Quit", show=False),
        Binding("ctrl+k", "search", "Search", show=True, priority=True),
        Binding("/", "search", "Search", show=False),
        Binding("n", "next_page", "Next Page", show=True),
        Binding("p", "prev_page", "Previous Page", show=True),
        Binding("s", "sort('name')", "Sort by Name", show=True),
        Binding("o", "sort('no')", "Sort by No.", show=False),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("escape", "clear_search", "Clear Search", show=False),
    ]

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetcher: Optional[CountryFetcher] = None,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.settings = settings or load_settings()
        self.fetcher = fetcher or CountryFetcher(
            endpoint=self.settings.api_endpoint,
            timeout=self.settings.request_timeout,
        )
        self.debouncer = Debouncer(
            self.set_timer, self.dispatch_lookup, delay=self.settings.debounce_delay
        )
        self.controller = QueryController(
            self.fetcher,
            self.debouncer,
            page_size=self.settings.page_size,
            group_size=self.settings.group_size,
            drop_stale_responses=self.settings.drop_stale_responses,
            on_change=self.render_view,
        )

    def compose(self) -> ComposeResult:
        yield CustomHeader()
        with Container(id="main-container"):
            with Vertical(id="lookup-pane"):
                with Container(id="search-container"):
                    yield Input(
                        placeholder="Search countries... (Press ctrl+k to focus)",
                        id="search-input",
                    )
                    yield Label("", id="lookup-status")
                yield DataTable(id="country-table", cursor_type="row")
                yield PaginationBar(id="pagination")
        yield Footer()
        yield LoadingIndicator(id="loading-indicator")

    def on_mount(self) -> None:
        self.title = "countrydex"
        self.theme = self.settings.theme
        self.query_one("#loading-indicator").display = False
        self.render_view(self.controller.view())
        self.query_one("#search-input", Input).focus()

    async def on_unmount(self) -> None:
        await self.fetcher.aclose()

    def render_view(self, view: TableView) -> None:
        table = self.query_one("#country-table", DataTable)
        table.clear(columns=True)
        table.add_column(column_label(view, "no"), key="no", width=6)
        table.add_column(column_label(view, "name"), key="name")
        table.add_column(FLAG_COLUMN_LABEL, key="flag", width=14)
        for record in view.rows:
            table.add_row(*format_row(record), key=f"{record.rank}:{record.name}")

        self.query_one("#lookup-status", Label).update(format_summary(view))
        self.query_one("#loading-indicator").display = view.loading
        self.query_one(PaginationBar).table_view = view

        self.sub_title = format_subtitle(view) or ""
        header = self.query_one(CustomHeader)
        header.phase = self.controller.phase
        header.refresh_header_text()

    def dispatch_lookup(self, query: str) -> None:
        self.lookup_worker(query)

    @work(group="lookup", exit_on_error=False)
    async def lookup_worker(self, query: str) -> None:
        """Run one lookup without blocking further input."""
        await self.controller.dispatch(query)

    @on(Input.Changed, "#search-input")
    def on_input_changed(self, event: Input.Changed) -> None:
        """Debounce the search input."""
        self.controller.on_text_change(event.value)

    @on(Input.Submitted, "#search-input")
    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.query_one("#country-table", DataTable).focus()

    @on(DataTable.HeaderSelected, "#country-table")
    def on_header_selected(self, event: DataTable.HeaderSelected) -> None:
        self.controller.on_sort_column_click(str(event.column_key.value))

    @on(PaginationBar.Navigate)
    def on_pagination_navigate(self, event: PaginationBar.Navigate) -> None:
        if event.target == "prev":
            self.controller.on_prev_click()
        elif event.target == "next":
            self.controller.on_next_click()
        else:
            self.controller.on_page_click(int(event.target))

    def action_search(self) -> None:
        self.query_one("#search-input", Input).focus()

    def action_clear_search(self) -> None:
        search_input = self.query_one("#search-input", Input)
        search_input.value = ""
        self.controller.on_text_change("")
        self.query_one("#country-table", DataTable).focus()

    def action_sort(self, field: str) -> None:
        self.controller.on_sort_column_click(field)

    def action_next_page(self) -> None:
        self.controller.on_next_click()

    def action_prev_page(self) -> None:
        self.controller.on_prev_click()

    def action_cursor_down(self) -> None:
        if isinstance(self.focused, DataTable):
            self.focused.action_cursor_down()

    def action_cursor_up(self) -> None:
        if isinstance(self.focused, DataTable):
            self.focused.action_cursor_up()
