"""Command-line entry points: terminal request dashboard and relay server."""

import asyncio
import json
import logging
from typing import Optional, Sequence

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from .cache import CacheStore
from .config import get_settings
from .rows import FILTER_CHOICES, classify_status, is_truncatable
from .viewmodel import RequestListViewModel

app = typer.Typer(
    help="Browse maintenance requests from the spreadsheet backend and run the webhook relay."
)

BADGE_STYLES = {
    "new": "bold white on red",
    "pending": "bold black on yellow",
    "closed": "bold white on green",
    "other": "bold black on grey70",
}
IMPORTANT_STYLE = "bold blue"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_view_model() -> RequestListViewModel:
    """Separated so tests can inject a fake Row Source."""
    return RequestListViewModel.from_settings(get_settings())


def _load(status: str) -> RequestListViewModel:
    view_model = _build_view_model()
    try:
        view_model.set_filter(status)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--status") from exc
    asyncio.run(view_model.initialize())
    return view_model


def _render_table(
    view_model: RequestListViewModel,
    expand_all: bool,
    important_fields: Sequence[str] = (),
) -> Table:
    shown, total = view_model.counts
    table = Table(
        title="Maintenance Requests",
        caption=f"Showing {shown} of {total} requests",
        show_lines=True,
    )
    headers = view_model.headers
    for header in headers:
        if header in important_fields:
            table.add_column(
                header, overflow="fold", style=IMPORTANT_STYLE, header_style=IMPORTANT_STYLE
            )
        else:
            table.add_column(header, overflow="fold")

    for i, row in enumerate(view_model.displayed_rows):
        cells = []
        for j, header in enumerate(headers):
            raw = row.get(header)
            if header.lower() == "status":
                value = "" if raw is None else str(raw)
                cells.append(Text(value, style=BADGE_STYLES[classify_status(raw)]))
                continue
            expanded = expand_all or view_model.is_expanded(i, j)
            text = view_model.cell_text(i, j, expanded=expanded)
            if is_truncatable(raw) and not expanded:
                text += "..."
            cells.append(text)
        table.add_row(*cells)
    return table


@app.callback()
def main_options(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL or INFO).",
    ),
):
    """Configure logging before any subcommand runs."""
    _configure_logging(log_level or get_settings().log_level)


@app.command("show")
def show_command(
    status: str = typer.Option(
        "all",
        "--status",
        "-s",
        help=f"Status filter: {', '.join(FILTER_CHOICES)}.",
    ),
    expand_all: bool = typer.Option(
        False, "--expand-all", help="Show long cells in full instead of truncating."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the filtered rows as JSON instead of a table."
    ),
):
    """
    Show cached rows immediately, then refresh them from the Row Source.
    """
    view_model = _load(status)

    if as_json:
        typer.echo(json.dumps(view_model.view().model_dump(), ensure_ascii=False, indent=2))
        return

    if view_model.source in {"stale-cache", "fresh-cache"} and view_model.last_error:
        rprint(f"[yellow]Showing cached data; refresh failed: {view_model.last_error}[/yellow]")

    if not view_model.displayed_rows:
        rprint("[cyan]No data available for the current filter.[/cyan]")
        return
    Console().print(
        _render_table(view_model, expand_all, get_settings().important_fields)
    )


@app.command("copy")
def copy_command(
    row: int = typer.Argument(..., help="Row number as displayed (starting at 1)."),
    field: str = typer.Argument(..., help="Column name or column number (starting at 1)."),
    status: str = typer.Option(
        "all", "--status", "-s", help="Status filter used when numbering rows."
    ),
):
    """Copy the full value of one displayed cell to the clipboard."""
    view_model = _load(status)
    headers = view_model.headers
    if field.isdigit():
        field_index = int(field) - 1
    elif field in headers:
        field_index = headers.index(field)
    else:
        raise typer.BadParameter(f"unknown column {field!r}", param_hint="FIELD")

    try:
        copied = view_model.copy_cell(
            row - 1, field_index, command=get_settings().clipboard_command
        )
    except IndexError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not copied:
        rprint("[red]Copy failed.[/red]")
        raise typer.Exit(code=1)
    rprint("[green]Copied.[/green]")


@app.command("clear-cache")
def clear_cache_command():
    """Forget the cached snapshot so the next run waits for the network."""
    store = CacheStore(get_settings().cache_path)
    if store.clear():
        rprint(f"[green]Cleared cache at {store.path}[/green]")
    else:
        rprint(f"[cyan]No cached data at {store.path}[/cyan]")


@app.command("serve")
def serve_command(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
    log_level: Optional[str] = typer.Option(None, "--uvicorn-log-level"),
):
    """Run the webhook relay and /requests API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "request_dashboard.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=(log_level or get_settings().log_level).lower(),
    )


def main():
    app()


if __name__ == "__main__":
    main()
