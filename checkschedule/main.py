from __future__ import annotations

import asyncio
import sqlite3
import sys
from contextlib import contextmanager
from typing import Dict, Generator, List, Optional, Set

import typer
from rich.console import Console

from checkschedule.config import get_settings
from checkschedule.dashboard import DashboardState
from checkschedule.domain.calendar import format_date, parse_date, resolve_window
from checkschedule.domain.errors import InvalidDateError
from checkschedule.domain.models import Dimension, Origin
from checkschedule.engine.grid import AlertThresholds, GridEntry
from checkschedule.infrastructure.loader import ScheduleLoader
from checkschedule.infrastructure.store import ScheduleStore
from checkschedule.reporter import build_entry_panel, print_dates, print_grid, print_pivot
from checkschedule.utils.logging import configure_logging, get_logger

app = typer.Typer(help="CheckSchedule: weekly competitor schedule comparison.")
log = get_logger(__name__)

PATH_SEPARATOR = ">"


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@contextmanager
def _open_store(db_path: Optional[str]) -> Generator[ScheduleStore, None, None]:
    try:
        with ScheduleStore(db_path) as store:
            yield store
    except sqlite3.Error as exc:
        log.exception("Schedule store failure", extra={"db_path": db_path})
        typer.echo(f"Schedule store error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


async def _navigate(
    store: ScheduleStore,
    anchor: Optional[str],
    start: Optional[str],
    end: Optional[str],
    shift: int = 0,
) -> DashboardState:
    """Resolve the window from navigation parameters and load its rows."""
    loader = ScheduleLoader(store)
    known = await loader.known_dates()
    window = resolve_window(known, anchor=anchor, start=start, end=end)
    if shift:
        window = window.shifted(shift)
    state = DashboardState(window=window)
    state.apply_load(await loader.load(window))
    return state


def _load_state(
    store: ScheduleStore,
    anchor: Optional[str],
    start: Optional[str],
    end: Optional[str],
    shift: int = 0,
) -> DashboardState:
    try:
        return asyncio.run(_navigate(store, anchor, start, end, shift))
    except InvalidDateError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _parse_filters(specs: List[str]) -> Dict[Dimension, Set[str]]:
    """Turn repeated ``dimension=value`` options into selection sets."""
    filters: Dict[Dimension, Set[str]] = {}
    for spec in specs:
        name, sep, value = spec.partition("=")
        if not sep:
            raise typer.BadParameter(f"Filter '{spec}' must look like dimension=value.")
        try:
            dimension = Dimension(name.strip().lower())
        except ValueError as exc:
            choices = ", ".join(d.value for d in Dimension)
            raise typer.BadParameter(f"Unknown dimension '{name}'. Choose from: {choices}.") from exc
        filters.setdefault(dimension, set()).add(value.strip())
    return filters


def _parse_cell(spec: str) -> tuple[str, int]:
    day, sep, hour = spec.partition("@")
    try:
        if not sep:
            raise ValueError("missing '@'")
        value = int(hour)
        if not 0 <= value <= 23:
            raise ValueError(f"hour {value} out of range")
        return format_date(parse_date(day)), value
    except (InvalidDateError, ValueError) as exc:
        raise typer.BadParameter(f"Cell '{spec}' must look like YYYY/MM/DD@HH ({exc}).") from exc


DateOption = typer.Option(
    None, "--date", "-d", help="Anchor date (YYYY/MM/DD); shows its Mon-Sun week."
)
StartOption = typer.Option(None, "--start", help="Explicit range start (YYYY/MM/DD).")
EndOption = typer.Option(None, "--end", help="Explicit range end (YYYY/MM/DD).")
DbOption = typer.Option(None, "--db", help="Override the SQLite database path.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_path} | env={settings.app_env} | self={settings.self_channel_name} | "
        f"cap={settings.grid_display_cap} top_n={settings.pivot_top_n} "
        f"alert=(sche>={settings.sche_sml_threshold}, item>={settings.item_sml_threshold})"
    )


@app.command("init-db")
def init_db(db: Optional[str] = DbOption) -> None:
    """
    Create the schedules table if it does not exist.
    """
    _setup()
    with _open_store(db) as store:
        store.initialize_schema()
    typer.echo(f"Schema ready in {db or get_settings().db_path}.")


@app.command()
def dates(db: Optional[str] = DbOption) -> None:
    """
    List the broadcast dates present in the store.
    """
    _setup()
    with _open_store(db) as store:
        print_dates(store.fetch_distinct_dates())


@app.command()
def pivot(
    date: Optional[str] = DateOption,
    start: Optional[str] = StartOption,
    end: Optional[str] = EndOption,
    filters: List[str] = typer.Option(
        [],
        "--filter",
        "-f",
        help="Restrict a dimension to a value; repeatable (e.g. broadcaster=GS홈쇼핑).",
    ),
    include_incomplete: bool = typer.Option(
        False,
        "--include-incomplete",
        help="Also show mid categories whose rows lack a small category or brand.",
    ),
    expand: List[str] = typer.Option(
        [],
        "--expand",
        "-e",
        help=f"Expand a group path, levels joined by '{PATH_SEPARATOR}'; repeatable.",
    ),
    expand_all: bool = typer.Option(False, "--expand-all", help="Expand every group."),
    db: Optional[str] = DbOption,
) -> None:
    """
    Show the competitor pivot (mid › small › brand by broadcaster).
    """
    _setup()
    selections = _parse_filters(filters)
    with _open_store(db) as store:
        state = _load_state(store, date, start, end)

    if include_incomplete:
        state.clear_selection(Dimension.MID)
    for dimension, values in selections.items():
        state.set_selection(dimension, values)
    if expand_all:
        state.expand_all()
    for spec in expand:
        parts = tuple(part.strip() for part in spec.split(PATH_SEPARATOR))
        for depth in range(1, len(parts) + 1):
            if parts[:depth] not in state.expanded:
                state.toggle_expand(parts[:depth])

    window = state.window
    if window is not None:
        typer.echo(f"Window {window.start_text} ~ {window.end_text}")
    print_pivot(state.pivot, state.visible_lines())


@app.command()
def grid(
    date: Optional[str] = DateOption,
    shift: int = typer.Option(
        0, "--shift", help="Move by whole weeks (e.g. -1 for the previous week)."
    ),
    expand_cell: List[str] = typer.Option(
        [],
        "--expand-cell",
        help="Show every entry of a cell, given as YYYY/MM/DD@HH; repeatable.",
    ),
    expand_all: bool = typer.Option(False, "--expand-all", help="Show every entry of every cell."),
    db: Optional[str] = DbOption,
) -> None:
    """
    Show the weekly self/competitor grid for the week containing --date.
    """
    _setup()
    settings = get_settings()
    cells = [_parse_cell(spec) for spec in expand_cell]
    with _open_store(db) as store:
        state = _load_state(store, date, None, None, shift=shift)

    if expand_all:
        state.expand_all_cells()
    for day, hour in cells:
        if not state.is_cell_expanded(day, hour):
            state.toggle_cell(day, hour)

    if state.grid is None:
        typer.echo("No active window.", err=True)
        raise typer.Exit(code=1)
    window = state.window
    typer.echo(f"{settings.self_channel_name} | week {window.start_text} ~ {window.end_text}")
    print_grid(state.grid, state.is_cell_expanded, state.thresholds)


@app.command()
def detail(
    row_id: int = typer.Argument(..., help="Schedule row id."),
    competitor: bool = typer.Option(
        False, "--competitor", "-c", help="Show the competitor side of the row."
    ),
    db: Optional[str] = DbOption,
) -> None:
    """
    Show the detail panel for one schedule slot.
    """
    _setup()
    settings = get_settings()
    with _open_store(db) as store:
        row = store.fetch_row(row_id)
    if row is None:
        typer.echo(f"No schedule row with id {row_id}.", err=True)
        raise typer.Exit(code=1)
    if competitor and not row.has_competitor:
        typer.echo(f"Row {row_id} has no competitor slot.", err=True)
        raise typer.Exit(code=1)

    thresholds = AlertThresholds(
        sche_sml_score=settings.sche_sml_threshold,
        item_sml_score=settings.item_sml_threshold,
    )
    entry = GridEntry(
        origin=Origin.COMPETITOR if competitor else Origin.SELF,
        row=row,
        self_label=settings.self_channel_name,
    )
    Console().print(build_entry_panel(entry, thresholds))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
