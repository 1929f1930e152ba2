"""
Domain package for CheckSchedule.

Exports the schedule row model, the date window, and the error hierarchy.
Keep this package focused on data definitions and validation concerns.
"""

from checkschedule.domain.calendar import DateWindow, resolve_window
from checkschedule.domain.errors import CheckScheduleError, InvalidDateError, StoreNotOpenError
from checkschedule.domain.models import Dimension, Origin, ScheduleRow

__all__ = [
    "CheckScheduleError",
    "DateWindow",
    "Dimension",
    "InvalidDateError",
    "Origin",
    "ScheduleRow",
    "StoreNotOpenError",
    "resolve_window",
]
