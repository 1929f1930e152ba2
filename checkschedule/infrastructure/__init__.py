"""
Infrastructure package for CheckSchedule.

Centralizes data access: the SQLite schedule store and the async loader
that feeds rows to the dashboard. Keep this layer focused on I/O and
resource management, decoupled from pivot/grid logic.
"""

from checkschedule.infrastructure.loader import LoadResult, RowSource, ScheduleLoader
from checkschedule.infrastructure.store import ScheduleStore

__all__ = [
    "LoadResult",
    "RowSource",
    "ScheduleLoader",
    "ScheduleStore",
]
