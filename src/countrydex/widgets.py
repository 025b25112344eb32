from typing import List, Optional, Union, TYPE_CHECKING

from textual import on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.message import Message
from textual.reactive import reactive, Reactive
from textual.widgets import Button, Static
from textual.widgets._header import HeaderIcon

from rich.text import Text

from .models import GAP, Phase, TableView

if TYPE_CHECKING:
    from .main import countrydex


PHASE_LABELS = {
    Phase.IDLE: "[dim]idle[/dim]",
    Phase.DEBOUNCING: "[b]typing...[/b]",
    Phase.LOADING: "[b $warning]looking up[/]",
    Phase.READY: "[b $success]ready[/]",
}


class CustomHeader(Container):
    """A custom header that shows the title and the lookup phase."""

    phase: reactive[Phase] = reactive(Phase.IDLE)
    icon = Reactive("⭘")

    if TYPE_CHECKING:
        app: countrydex

    def compose(self) -> ComposeResult:
        yield HeaderIcon().data_bind(CustomHeader.icon)
        yield Static(id="header-title-subtitle")
        yield Static(id="header-phase")

    def watch_phase(self, phase: Phase) -> None:
        self.refresh_header_text()

    def on_mount(self) -> None:
        self.refresh_header_text()

    def refresh_header_text(self) -> None:
        """Builds and sets the header's renderable text."""
        if not self.is_mounted:
            return
        title_text = Text(self.app.title, style="bold", no_wrap=True)
        sub_title_text = Text(self.app.sub_title, no_wrap=True, overflow="ellipsis")

        left_part = Text.assemble(title_text, "", sub_title_text)
        self.query_one("#header-title-subtitle", Static).update(left_part)
        self.query_one("#header-phase", Static).update(
            f"lookup: {PHASE_LABELS[self.phase]}"
        )


class PaginationBar(Horizontal):
    """Previous, the visible block of page numbers with gap markers, Next."""

    table_view: reactive[Optional[TableView]] = reactive(None, recompose=True)

    class Navigate(Message):
        """Posted when a page control is pressed."""

        def __init__(self, target: Union[int, str]) -> None:
            super().__init__()
            self.target = target

    def compose(self) -> ComposeResult:
        view = self.table_view
        if view is None or not view.page_controls:
            return
        yield Button(
            "Previous", name="prev", classes="page-nav", disabled=not view.has_prev
        )
        for control in view.page_controls:
            if control == GAP:
                yield Button(GAP, classes="page-gap", disabled=True)
            else:
                yield Button(
                    str(control),
                    name=f"page:{control}",
                    classes="page-number",
                    disabled=control == view.page,
                )
        yield Button("Next", name="next", classes="page-nav", disabled=not view.has_next)

    @on(Button.Pressed)
    def page_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        name = event.button.name or ""
        if name in ("prev", "next"):
            self.post_message(self.Navigate(name))
        elif name.startswith("page:"):
            self.post_message(self.Navigate(int(name.split(":", 1)[1])))

    @property
    def labels(self) -> List[str]:
        return [str(button.label) for button in self.query(Button)]
