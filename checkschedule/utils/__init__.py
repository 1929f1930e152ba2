"""
Cross-cutting helpers for CheckSchedule: log setup and recompute timing.

Nothing in here knows about schedule rows.
"""

from checkschedule.utils.logging import JsonFormatter, configure_logging, get_logger
from checkschedule.utils.profiler import ProfileStats, profile_block

__all__ = [
    # Logging
    "JsonFormatter",
    "configure_logging",
    "get_logger",
    # Timing
    "ProfileStats",
    "profile_block",
]
