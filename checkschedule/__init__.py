"""
CheckSchedule - weekly home-shopping schedule comparison.

Reads a single SQLite table of schedule rows that pair the broadcaster's own
slots with competitor slots, and derives two views from the rows of one
week:

- A competitor pivot: weighted hours per broadcaster, grouped by mid
  category, small category and brand, with top-N ranking and totals
- A weekly grid: self and competitor slots bucketed by day and hour, with
  alert-preserving display caps

Both views are pure functions of the loaded rows and the user's filter and
expand state; `DashboardState` recomputes them on every change.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from checkschedule.config import Settings, get_settings
from checkschedule.dashboard import DashboardState, default_selections
from checkschedule.domain import DateWindow, Dimension, Origin, ScheduleRow, resolve_window
from checkschedule.engine import compute_aggregation, compute_grid
from checkschedule.infrastructure import ScheduleLoader, ScheduleStore
from checkschedule.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "DateWindow",
    "Dimension",
    "Origin",
    "ScheduleRow",
    "resolve_window",
    # Engine
    "compute_aggregation",
    "compute_grid",
    # State and data access
    "DashboardState",
    "default_selections",
    "ScheduleLoader",
    "ScheduleStore",
    # Logging
    "configure_logging",
    "get_logger",
]
