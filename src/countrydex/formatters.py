from typing import Optional, Tuple
from rich.style import Style
from rich.text import Text

from .models import ASC, SORT_SPECS, Record, TableView

FLAG_COLUMN_LABEL = "Country Flag"


def sort_indicator(view: TableView, field: str) -> str:
    if view.sort_spec.field != field:
        return ""
    return "▲" if view.sort_direction == ASC else "▼"


def column_label(view: TableView, field: str) -> Text:
    label = SORT_SPECS[field].label
    indicator = sort_indicator(view, field)
    if indicator:
        return Text.assemble((label, "bold"), " ", (indicator, "bold cyan"))
    return Text(label)


def format_flag(flag_ref: str) -> Text:
    if not flag_ref:
        return Text.from_markup("[dim]_Not available_[/dim]")
    return Text("flag ↗", style=Style(link=flag_ref))


def format_row(record: Record) -> Tuple[str, Text, Text]:
    return (str(record.rank), Text(record.name), format_flag(record.flag_ref))


def format_summary(view: TableView) -> str:
    if view.loading:
        return "[dim italic]Loading...[/dim italic]"
    if view.message:
        return f"[dim italic]{view.message}[/dim italic]"
    return (
        f"[b $text]Results:[/] [b $primary]{view.total_records}[/]  "
        f"[b $text]Page:[/] [b $primary]{view.page}[/]/[b $primary]{view.total_pages}[/]  "
        f"[b $text]Sorted by:[/] [$secondary]{view.sort_spec.label} "
        f"({'ascending' if view.sort_direction == ASC else 'descending'})[/]"
    )


def format_subtitle(view: TableView) -> Optional[str]:
    if not view.rows:
        return None
    return f" - showing {len(view.rows)}/{view.total_records} countries"
