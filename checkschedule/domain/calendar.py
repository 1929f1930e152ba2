"""
Date and time-of-day helpers.

Broadcast dates travel as ``YYYY/MM/DD`` strings and slot times as
``HH:MM[:SS]`` strings. Navigation input is parsed strictly (a bad date from
the caller is an error); row content is parsed leniently (a bad time is
treated as midnight so one broken row never breaks a render).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from checkschedule.domain.errors import InvalidDateError

DATE_FORMAT = "%Y/%m/%d"
WEEK_LENGTH = 7
MINUTES_PER_DAY = 1440
SENTINEL_TIME = "--:--"

_DATE_RE = re.compile(r"^\s*(\d{4})[/-](\d{1,2})[/-](\d{1,2})\s*$")
_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?")


def parse_date(text: str) -> date:
    """
    Parse a ``YYYY/MM/DD`` (or ``YYYY-MM-DD``) string.

    Raises
    ------
    InvalidDateError
        If the text is not a valid calendar date.
    """
    match = _DATE_RE.match(text or "")
    if not match:
        raise InvalidDateError(f"Invalid date '{text}'. Expected YYYY/MM/DD.")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDateError(f"Invalid date '{text}': {exc}") from exc


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def normalize_date_text(text: Optional[str]) -> Optional[str]:
    """Canonical ``YYYY/MM/DD`` form of a row date, or None if unparseable."""
    if not text:
        return None
    try:
        return format_date(parse_date(text))
    except InvalidDateError:
        return None


def monday_of(anchor: date) -> date:
    """Monday of the Monday-first week containing `anchor` (Sunday closes its week)."""
    return anchor - timedelta(days=anchor.weekday())


def default_anchor(known_dates: Iterable[str], today: Optional[date] = None) -> date:
    """
    Anchor used when navigation carries no date: today if it has data,
    otherwise the latest known date, otherwise today.
    """
    today = today or date.today()
    known = [d for d in (normalize_date_text(text) for text in known_dates) if d]
    if format_date(today) in known:
        return today
    if known:
        return parse_date(max(known))
    return today


@dataclass(frozen=True)
class DateWindow:
    """
    Inclusive date range the dashboard is looking at.

    Built either from an anchor date (the Monday..Sunday week containing it)
    or from an explicit start/end pair.
    """

    start: date
    end: date
    anchor: Optional[date] = None

    @classmethod
    def week_of(cls, anchor: date) -> "DateWindow":
        start = monday_of(anchor)
        return cls(start=start, end=start + timedelta(days=WEEK_LENGTH - 1), anchor=anchor)

    @classmethod
    def between(cls, start: date, end: date) -> "DateWindow":
        if end < start:
            raise InvalidDateError(
                f"Invalid range: end {format_date(end)} is before start {format_date(start)}."
            )
        return cls(start=start, end=end, anchor=None)

    @property
    def start_text(self) -> str:
        return format_date(self.start)

    @property
    def end_text(self) -> str:
        return format_date(self.end)

    @property
    def is_week(self) -> bool:
        return self.anchor is not None

    def days(self) -> List[date]:
        span = (self.end - self.start).days + 1
        return [self.start + timedelta(days=offset) for offset in range(span)]

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    def shifted(self, weeks: int) -> "DateWindow":
        """Week window `weeks` weeks away, anchored on this window's Monday."""
        return DateWindow.week_of(monday_of(self.start) + timedelta(weeks=weeks))


def resolve_window(
    known_dates: Iterable[str],
    anchor: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    today: Optional[date] = None,
) -> DateWindow:
    """
    Turn navigation parameters into a window.

    An explicit start/end pair wins; a lone start or end is an error. Without
    any parameters the week of the default anchor is used.
    """
    if start or end:
        if not (start and end):
            raise InvalidDateError("Both start and end dates are required for a range.")
        return DateWindow.between(parse_date(start), parse_date(end))
    if anchor:
        return DateWindow.week_of(parse_date(anchor))
    return DateWindow.week_of(default_anchor(known_dates, today=today))


def _parse_clock(text: Optional[str]) -> Optional[Tuple[int, int]]:
    if not text:
        return None
    match = _CLOCK_RE.match(str(text))
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def is_valid_time(text: Optional[str]) -> bool:
    return _parse_clock(text) is not None


def time_to_minutes(text: Optional[str]) -> int:
    """Minutes since midnight; unparseable input counts as 00:00."""
    clock = _parse_clock(text)
    if clock is None:
        return 0
    return clock[0] * 60 + clock[1]


def hour_of(text: Optional[str]) -> int:
    """Hour-of-day bucket (0..23); unparseable input lands in hour 0."""
    clock = _parse_clock(text)
    return clock[0] if clock else 0


def display_time(text: Optional[str]) -> str:
    clock = _parse_clock(text)
    if clock is None:
        return SENTINEL_TIME
    return f"{clock[0]:02d}:{clock[1]:02d}"


def duration_minutes(start: Optional[str], end: Optional[str]) -> int:
    """
    Slot length in minutes, wrapping past midnight.

    Returns 0 when either bound is missing or unparseable.
    """
    if not (is_valid_time(start) and is_valid_time(end)):
        return 0
    duration = time_to_minutes(end) - time_to_minutes(start)
    if duration < 0:
        duration += MINUTES_PER_DAY
    return duration


__all__ = [
    "DATE_FORMAT",
    "MINUTES_PER_DAY",
    "SENTINEL_TIME",
    "WEEK_LENGTH",
    "DateWindow",
    "default_anchor",
    "display_time",
    "duration_minutes",
    "format_date",
    "hour_of",
    "is_valid_time",
    "monday_of",
    "normalize_date_text",
    "parse_date",
    "resolve_window",
    "time_to_minutes",
]
