"""
Interactive view state for the CheckSchedule dashboard.

Holds what the user has chosen (filter selections, expanded pivot paths,
expanded grid cells, the active window) next to the rows loaded for that
window, and keeps the derived pivot and grid current. Every write recomputes
the derived views in full from the current rows; there is no incremental
update path.

Usage (example from CLI):
    from checkschedule.dashboard import DashboardState

    state = DashboardState(rows, window)
    state.toggle_value(Dimension.BROADCASTER, "GS홈쇼핑")
    state.toggle_expand(("Outer",))
    for line in state.visible_lines():
        ...
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from checkschedule.config import Settings, get_settings
from checkschedule.domain.calendar import DateWindow, format_date
from checkschedule.domain.models import Dimension, ScheduleRow
from checkschedule.engine.aggregation import (
    NodePath,
    PivotLine,
    PivotResult,
    all_paths,
    complete_mid_values,
    compute_aggregation,
    observed_values,
    visible_lines,
)
from checkschedule.engine.grid import AlertThresholds, CellKey, WeekGrid, compute_grid
from checkschedule.infrastructure.loader import LoadResult
from checkschedule.utils.logging import get_logger
from checkschedule.utils.profiler import profile_block

log = get_logger(__name__)


def default_selections(rows: Sequence[ScheduleRow]) -> Dict[Dimension, Set[str]]:
    """
    Initial filter selections for a fresh row set.

    Every observed value is selected, except that the mid category starts
    with only the categories whose rows carry both a small category and a
    brand. With no rows nothing is recorded, which selects everything.
    """
    if not rows:
        return {}
    options = observed_values(rows)
    selections = {dimension: set(values) for dimension, values in options.items()}
    selections[Dimension.MID] = complete_mid_values(rows)
    return selections


class DashboardState:
    """
    Mutable view state plus the derived views computed from it.

    Attributes
    ----------
    pivot : PivotResult
        Competitor pivot for the current rows and selections.
    grid : WeekGrid | None
        Weekly grid for the current rows and window (None without a window).
    """

    def __init__(
        self,
        rows: Iterable[ScheduleRow] = (),
        window: Optional[DateWindow] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.top_n = settings.pivot_top_n
        self.display_cap = settings.grid_display_cap
        self.self_label = settings.self_channel_name
        self.thresholds = AlertThresholds(
            sche_sml_score=settings.sche_sml_threshold,
            item_sml_score=settings.item_sml_threshold,
        )
        self.recompute_count = 0
        self._rows: Tuple[ScheduleRow, ...] = ()
        self._window: Optional[DateWindow] = None
        self._options: Dict[Dimension, List[str]] = {}
        self._selections: Dict[Dimension, Set[str]] = {}
        self._expanded: Set[NodePath] = set()
        self._expanded_cells: Set[CellKey] = set()
        self.pivot: PivotResult = compute_aggregation((), top_n=self.top_n)
        self.grid: Optional[WeekGrid] = None
        self.set_rows(rows, window)

    # Inputs

    @property
    def rows(self) -> Tuple[ScheduleRow, ...]:
        return self._rows

    @property
    def window(self) -> Optional[DateWindow]:
        return self._window

    @property
    def options(self) -> Dict[Dimension, List[str]]:
        """All observed values per dimension, for filter pickers."""
        return {dimension: list(values) for dimension, values in self._options.items()}

    @property
    def selections(self) -> Dict[Dimension, Set[str]]:
        return {dimension: set(values) for dimension, values in self._selections.items()}

    @property
    def expanded(self) -> Set[NodePath]:
        return set(self._expanded)

    def set_rows(self, rows: Iterable[ScheduleRow], window: Optional[DateWindow] = None) -> None:
        """Replace the row set; filters and expand state reset to their defaults."""
        self._rows = tuple(rows)
        if window is not None:
            self._window = window
        self._options = observed_values(self._rows) if self._rows else {}
        self._selections = default_selections(self._rows)
        self._expanded = set()
        self._expanded_cells = set()
        self._recompute()

    def apply_load(self, result: Optional[LoadResult]) -> bool:
        """Adopt a loader result; a stale (None) result leaves the state untouched."""
        if result is None:
            return False
        self.set_rows(result.rows, result.window)
        return True

    # Filters

    def set_selection(self, dimension: Dimension, values: Iterable[str]) -> None:
        self._selections[dimension] = set(values)
        self._recompute(grid=False)

    def clear_selection(self, dimension: Dimension) -> None:
        """Forget the selection for `dimension`, which selects all of its values."""
        self._selections.pop(dimension, None)
        self._recompute(grid=False)

    def toggle_value(self, dimension: Dimension, value: str) -> None:
        selected = set(self._current_selection(dimension))
        if value in selected:
            selected.remove(value)
        else:
            selected.add(value)
        self.set_selection(dimension, selected)

    def toggle_all(self, dimension: Dimension, search: str = "") -> None:
        """
        Select every value matching `search` (case-insensitive substring), or
        deselect them all if they are already all selected.
        """
        needle = search.lower()
        matching = [v for v in self._options.get(dimension, []) if needle in v.lower()]
        selected = set(self._current_selection(dimension))
        if all(value in selected for value in matching):
            selected.difference_update(matching)
        else:
            selected.update(matching)
        self.set_selection(dimension, selected)

    def is_filtered(self, dimension: Dimension) -> bool:
        """True when some observed value of `dimension` is deselected."""
        if dimension not in self._selections:
            return False
        return len(self._selections[dimension]) < len(self._options.get(dimension, []))

    def _current_selection(self, dimension: Dimension) -> Set[str]:
        if dimension in self._selections:
            return self._selections[dimension]
        return set(self._options.get(dimension, []))

    # Pivot expand state

    def toggle_expand(self, path: Sequence[str]) -> None:
        key = tuple(path)
        if key in self._expanded:
            self._expanded.remove(key)
        else:
            self._expanded.add(key)
        self._recompute(grid=False)

    def expand_all(self) -> None:
        self._expanded = all_paths(self.pivot.tree)
        self._recompute(grid=False)

    def collapse_all(self) -> None:
        self._expanded = set()
        self._recompute(grid=False)

    def visible_lines(self) -> List[PivotLine]:
        return visible_lines(self.pivot.tree, self._expanded)

    # Grid expand state

    def toggle_cell(self, day: str, hour: int) -> None:
        key = (day, hour)
        if key in self._expanded_cells:
            self._expanded_cells.remove(key)
        else:
            self._expanded_cells.add(key)
        self._recompute(pivot=False)

    def expand_all_cells(self) -> None:
        if self.grid is not None:
            self._expanded_cells = {
                (day, hour) for day, hours in self.grid.cells.items() for hour in hours
            }
        self._recompute(pivot=False)

    def is_cell_expanded(self, day: str, hour: int) -> bool:
        return (day, hour) in self._expanded_cells

    # Window

    def set_window(self, window: DateWindow) -> None:
        """
        Move to `window` and drop the previous window's rows.

        Both views stay empty until `apply_load()` (or `set_rows()`) supplies
        the rows fetched for the new window.
        """
        self.set_rows((), window)

    def shift_week(self, weeks: int) -> DateWindow:
        """Move the window by whole weeks from its Monday and return the new window."""
        if self._window is None:
            raise RuntimeError("No active window to shift.")
        window = self._window.shifted(weeks)
        self.set_window(window)
        return window

    # Derived views

    def _recompute(self, pivot: bool = True, grid: bool = True) -> None:
        with profile_block("dashboard-recompute") as stats:
            if pivot:
                self.pivot = compute_aggregation(
                    self._rows,
                    self._selections,
                    broadcasters=self._options.get(Dimension.BROADCASTER, []),
                    top_n=self.top_n,
                )
            if grid:
                self.grid = (
                    compute_grid(
                        self._rows,
                        self._window.start,
                        display_cap=self.display_cap,
                        thresholds=self.thresholds,
                        self_label=self.self_label,
                    )
                    if self._window is not None
                    else None
                )
        self.recompute_count += 1
        log.debug(
            "Derived views recomputed",
            extra={
                "rows": len(self._rows),
                "filtered_rows": self.pivot.row_count,
                "window_start": format_date(self._window.start) if self._window else None,
                "pivot": pivot,
                "grid": grid,
                "duration_ms": round(stats.duration_ms, 3),
            },
        )


__all__ = ["DashboardState", "default_selections"]
