"""
Engine package for CheckSchedule.

Pure computations over in-memory schedule rows: the competitor pivot and the
weekly grid. Nothing here performs I/O or keeps state between calls.
"""

from checkschedule.engine.aggregation import (
    PLACEHOLDER,
    GroupNode,
    PivotLine,
    PivotResult,
    compute_aggregation,
    observed_values,
    visible_lines,
)
from checkschedule.engine.grid import (
    AlertThresholds,
    GridCell,
    GridEntry,
    WeekGrid,
    compute_grid,
    is_alert,
)

__all__ = [
    # Pivot
    "PLACEHOLDER",
    "GroupNode",
    "PivotLine",
    "PivotResult",
    "compute_aggregation",
    "observed_values",
    "visible_lines",
    # Grid
    "AlertThresholds",
    "GridCell",
    "GridEntry",
    "WeekGrid",
    "compute_grid",
    "is_alert",
]
