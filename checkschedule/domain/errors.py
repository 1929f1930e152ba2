"""
Exception hierarchy for CheckSchedule.

Row content never raises: malformed fields degrade to placeholders. These
exceptions cover caller mistakes (bad navigation dates, reading a closed
store) only.
"""
from __future__ import annotations


class CheckScheduleError(Exception):
    """Base class for all CheckSchedule errors."""


class InvalidDateError(CheckScheduleError, ValueError):
    """A caller-supplied date or date range could not be parsed or is inverted."""


class StoreNotOpenError(CheckScheduleError, RuntimeError):
    """The schedule store was read before `open()` or after `close()`."""


__all__ = ["CheckScheduleError", "InvalidDateError", "StoreNotOpenError"]
