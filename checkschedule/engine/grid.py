"""
Weekly grid: bucket self and competitor slots into (date, hour) cells.

Each row contributes a self entry (at the hour of ``bd_btime``) and, when it
names a competitor, a competitor entry (at the hour of ``other_btime``).
Self entries repeat across rows because one self slot is paired with many
competitor slots, so they are deduplicated per cell by start time;
competitor entries are kept as-is. A collapsed cell shows at most
`display_cap` entries but never hides an alert.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from checkschedule.domain.calendar import (
    WEEK_LENGTH,
    display_time,
    duration_minutes,
    format_date,
    hour_of,
    normalize_date_text,
    time_to_minutes,
)
from checkschedule.domain.models import SELF_CHANNEL_NAME, Origin, ScheduleRow

DEFAULT_DISPLAY_CAP = 3
HOURS = tuple(range(24))
WEEKDAY_LABELS = ("월", "화", "수", "목", "금", "토", "일")

NO_SELF_PROGRAM = "방송정보없음"
NO_PRODUCT_NAME = "상품명 없음"
NO_DESCRIPTION = "설명 없음"

# Competitor broadcaster name -> short label.
CHANNEL_LABELS: Dict[str, str] = {
    "현대홈쇼핑": "현대",
    "GS홈쇼핑": "GS",
    "롯데홈쇼핑": "롯데",
    "CJ온스타일": "CJ",
    "SK스토아": "SK",
    "KT알파": "KT",
}

CellKey = Tuple[str, int]


@dataclass(frozen=True)
class AlertThresholds:
    sche_sml_score: float = 6.0
    item_sml_score: float = 1.5


@dataclass(frozen=True)
class GridEntry:
    """One slot rendered in a grid cell."""

    origin: Origin
    row: ScheduleRow
    self_label: str = SELF_CHANNEL_NAME

    @property
    def is_self(self) -> bool:
        return self.origin is Origin.SELF

    @property
    def start_time(self) -> Optional[str]:
        return self.row.bd_btime if self.is_self else self.row.other_btime

    @property
    def end_time(self) -> Optional[str]:
        return self.row.bd_etime if self.is_self else self.row.other_etime

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def hour(self) -> int:
        return hour_of(self.start_time)

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    @property
    def time_range(self) -> str:
        return f"{display_time(self.start_time)} ~ {display_time(self.end_time)}"

    @property
    def channel_label(self) -> str:
        if self.is_self:
            return self.self_label
        name = self.row.other_broad_name or ""
        return CHANNEL_LABELS.get(name, name)

    @property
    def product_name(self) -> str:
        if self.is_self:
            return self.row.prog_name or NO_SELF_PROGRAM
        return self.row.other_product_name or NO_PRODUCT_NAME

    @property
    def category(self) -> Optional[str]:
        if self.is_self:
            return self.row.md_name
        return self.row.other_mgroup_name or self.row.other_lgroup_name

    @property
    def key(self) -> str:
        return f"{self.row.id}-{'S' if self.is_self else 'C'}"


def is_alert(entry: GridEntry, thresholds: AlertThresholds = AlertThresholds()) -> bool:
    """
    Alert predicate: a competitor entry whose similarity scores reach the
    thresholds, or any entry whose row carries an alert note.
    """
    if entry.row.has_alert_note:
        return True
    if entry.is_self:
        return False
    return (
        entry.row.sche_sml_score >= thresholds.sche_sml_score
        or entry.row.item_sml_score >= thresholds.item_sml_score
    )


def dedupe_entries(entries: Iterable[GridEntry]) -> List[GridEntry]:
    """Collapse self entries sharing a start time; competitor entries pass through."""
    seen_self_times: Set[Optional[str]] = set()
    unique: List[GridEntry] = []
    for entry in entries:
        if entry.is_self:
            if entry.row.bd_btime in seen_self_times:
                continue
            seen_self_times.add(entry.row.bd_btime)
        unique.append(entry)
    return unique


def sort_entries(entries: Iterable[GridEntry]) -> List[GridEntry]:
    """Stable sort by each entry's own start time."""
    return sorted(entries, key=lambda entry: entry.start_minutes)


def collapse_entries(
    entries: Sequence[GridEntry],
    display_cap: int = DEFAULT_DISPLAY_CAP,
    thresholds: AlertThresholds = AlertThresholds(),
) -> List[GridEntry]:
    """
    Entries shown while a cell is collapsed.

    Every alert entry is shown; remaining slots up to `display_cap` go to the
    earliest non-alert entries. Sorted order is preserved.
    """
    if len(entries) <= display_cap:
        return list(entries)
    flags = [is_alert(entry, thresholds) for entry in entries]
    room = max(display_cap - sum(flags), 0)
    visible: List[GridEntry] = []
    for entry, alert in zip(entries, flags):
        if alert:
            visible.append(entry)
        elif room > 0:
            visible.append(entry)
            room -= 1
    return visible


@dataclass
class GridCell:
    date: str
    hour: int
    entries: List[GridEntry] = field(default_factory=list)
    collapsed: List[GridEntry] = field(default_factory=list)

    @property
    def hidden_count(self) -> int:
        return len(self.entries) - len(self.collapsed)

    def visible(self, expanded: bool = False) -> List[GridEntry]:
        return list(self.entries) if expanded else list(self.collapsed)


@dataclass
class WeekGrid:
    """Cells for each (date, hour) of the window; empty cells are not stored."""

    start: date
    dates: List[str]
    cells: Dict[str, Dict[int, GridCell]]

    def cell(self, day: str, hour: int) -> GridCell:
        cell = self.cells.get(day, {}).get(hour)
        return cell if cell is not None else GridCell(date=day, hour=hour)

    def entry_count(self) -> int:
        return sum(len(cell.entries) for hours in self.cells.values() for cell in hours.values())

    def day_labels(self) -> List[Tuple[str, str]]:
        return [
            (day, WEEKDAY_LABELS[(self.start + timedelta(days=offset)).weekday()])
            for offset, day in enumerate(self.dates)
        ]

    @property
    def is_empty(self) -> bool:
        return self.entry_count() == 0


def compute_grid(
    rows: Iterable[ScheduleRow],
    start: date,
    days: int = WEEK_LENGTH,
    display_cap: int = DEFAULT_DISPLAY_CAP,
    thresholds: AlertThresholds = AlertThresholds(),
    self_label: str = SELF_CHANNEL_NAME,
) -> WeekGrid:
    """
    Bucket `rows` into the `days`-day window starting at `start`.

    Rows dated outside the window (or with an unreadable date) are skipped.
    Self entries are labelled `self_label`.
    """
    dates = [format_date(start + timedelta(days=offset)) for offset in range(days)]
    buckets: Dict[str, Dict[int, List[GridEntry]]] = {day: {} for day in dates}

    for row in rows:
        day = normalize_date_text(row.bd_date)
        if day not in buckets:
            continue
        hours = buckets[day]
        self_entry = GridEntry(origin=Origin.SELF, row=row, self_label=self_label)
        hours.setdefault(self_entry.hour, []).append(self_entry)
        if row.has_competitor:
            competitor_entry = GridEntry(origin=Origin.COMPETITOR, row=row, self_label=self_label)
            hours.setdefault(competitor_entry.hour, []).append(competitor_entry)

    cells: Dict[str, Dict[int, GridCell]] = {}
    for day, hours in buckets.items():
        cells[day] = {}
        for hour, raw_entries in hours.items():
            entries = sort_entries(dedupe_entries(raw_entries))
            cells[day][hour] = GridCell(
                date=day,
                hour=hour,
                entries=entries,
                collapsed=collapse_entries(entries, display_cap, thresholds),
            )

    return WeekGrid(start=start, dates=dates, cells=cells)


__all__ = [
    "CHANNEL_LABELS",
    "DEFAULT_DISPLAY_CAP",
    "HOURS",
    "AlertThresholds",
    "CellKey",
    "GridCell",
    "GridEntry",
    "WeekGrid",
    "collapse_entries",
    "compute_grid",
    "dedupe_entries",
    "is_alert",
    "sort_entries",
]
