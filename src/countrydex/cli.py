import argparse
import asyncio
import importlib.metadata
import logging
from typing import List, Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .config import ConfigError, Settings, load_settings, save_settings
from .controller import QueryController
from .fetcher import CountryFetcher
from .formatters import FLAG_COLUMN_LABEL, column_label, format_summary
from .models import ASC, DESC, GAP, SORT_SPECS, TableView


def translate_textual_to_rich_markup(markup_string: str) -> str:
    """Translates Textual's style variables to Rich-compatible color names."""
    style_map = {
        "$text": "default",
        "$primary": "cyan",
        "$secondary": "sky_blue1",
        "$accent": "medium_purple",
        "$warning": "yellow",
        "$success": "green",
    }
    for textual_style, rich_style in style_map.items():
        markup_string = markup_string.replace(textual_style, rich_style)
    return markup_string


def format_page_controls(view: TableView) -> str:
    parts = ["[dim]Previous[/dim]" if not view.has_prev else "Previous"]
    for control in view.page_controls:
        if control == GAP:
            parts.append(f"[dim]{GAP}[/dim]")
        elif control == view.page:
            parts.append(f"[b reverse] {control} [/b reverse]")
        else:
            parts.append(str(control))
    parts.append("[dim]Next[/dim]" if not view.has_next else "Next")
    return "  ".join(parts)


def build_table(view: TableView) -> Table:
    table = Table(show_header=True, pad_edge=True)
    table.add_column(column_label(view, "no"), style="cyan", no_wrap=True, justify="right")
    table.add_column(column_label(view, "name"), style="bold")
    table.add_column(FLAG_COLUMN_LABEL, style="dim")
    for record in view.rows:
        table.add_row(str(record.rank), Text(record.name), Text(record.flag_ref))
    return table


async def run_lookups(
    terms: List[str],
    settings: Settings,
    sort_field: str,
    direction: str,
    page: int,
    fetcher: Optional[CountryFetcher] = None,
) -> List[TableView]:
    """Push each term through a controller the way the TUI would, minus the debounce."""
    fetcher = fetcher or CountryFetcher(
        endpoint=settings.api_endpoint, timeout=settings.request_timeout
    )
    views = []
    try:
        for term in terms:
            controller = QueryController(
                fetcher,
                page_size=settings.page_size,
                group_size=settings.group_size,
            )
            controller.apply_sort(sort_field, direction)
            controller.on_text_change(term)
            if term.strip():
                await controller.dispatch(term)
            views.append(controller.on_page_click(page))
    finally:
        await fetcher.aclose()
    return views


def main(argv: Optional[List[str]] = None) -> None:
    appname = "countrydex"
    parser = argparse.ArgumentParser(
        description="Countrydex - a terminal lookup table for countries."
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{appname} {importlib.metadata.version(appname)}",
    )
    parser.add_argument(
        "-s",
        "--search",
        nargs="+",
        metavar="TERM",
        help="Look up one or more terms, print the results and exit.",
    )
    parser.add_argument(
        "--sort",
        choices=sorted(SORT_SPECS),
        default="name",
        help="Column to sort printed results by. Defaults to 'name'.",
    )
    parser.add_argument(
        "--desc", action="store_true", help="Sort printed results in descending order."
    )
    parser.add_argument(
        "--page", type=int, default=1, help="Page of printed results to show."
    )
    parser.add_argument("--page-size", type=int, help="Rows per page.")
    parser.add_argument("--endpoint", help="Base URL of the country lookup API.")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds.")
    parser.add_argument(
        "--debounce", type=float, help="Quiet period in seconds before a lookup."
    )
    parser.add_argument(
        "--drop-stale",
        action="store_true",
        default=None,
        help="Ignore responses to lookups that a newer lookup superseded.",
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Save the effective settings to the config file and exit.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log lookups to the terminal."
    )
    args = parser.parse_args(argv)

    console = Console()
    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        settings = load_settings(
            overrides={
                "api_endpoint": args.endpoint,
                "page_size": args.page_size,
                "request_timeout": args.timeout,
                "debounce_delay": args.debounce,
                "drop_stale_responses": args.drop_stale,
            }
        )
    except ConfigError as e:
        parser.error(str(e))

    if args.write_config:
        path = save_settings(settings)
        console.print(f"[bold green]Settings written to {path}[/bold green]")
        return

    if args.search:
        direction = DESC if args.desc else ASC
        views = asyncio.run(
            run_lookups(args.search, settings, args.sort, direction, args.page)
        )
        for term, view in zip(args.search, views):
            console.print(f"[bold cyan]Running search for '{escape(term)}'...[/bold cyan]")
            if not view.rows:
                console.print(f"[yellow]{view.message or 'No results found'}[/yellow]")
                continue
            console.print(translate_textual_to_rich_markup(format_summary(view)))
            console.print(build_table(view))
            console.print(format_page_controls(view))
        return

    from .main import countrydex

    app = countrydex(settings=settings)
    app.run()


if __name__ == "__main__":
    main()
