"""
Async row loading with last-write-wins semantics.

Each navigation triggers one fetch of the rows in the active window. Fetches
run the blocking store read on a worker thread so the event loop stays free.
A fetch that finishes after a newer one has started is stale and its result
is dropped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Protocol

from checkschedule.domain.calendar import DateWindow
from checkschedule.domain.models import ScheduleRow
from checkschedule.utils.logging import get_logger

log = get_logger(__name__)


class RowSource(Protocol):
    """Read contract the loader needs from a store."""

    def fetch_distinct_dates(self) -> List[str]: ...

    def fetch_rows_in_range(self, start: str, end: str) -> List[ScheduleRow]: ...


@dataclass(frozen=True)
class LoadResult:
    window: DateWindow
    rows: List[ScheduleRow]
    generation: int


class ScheduleLoader:
    """
    Fetch rows for a window, discarding superseded results.

    Each `load()` call takes a new generation number before it awaits; when
    its read completes it returns None if a later call has taken a newer
    number in the meantime.
    """

    def __init__(self, source: RowSource) -> None:
        self._source = source
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def known_dates(self) -> List[str]:
        return await asyncio.to_thread(self._source.fetch_distinct_dates)

    async def load(self, window: DateWindow) -> Optional[LoadResult]:
        self._generation += 1
        token = self._generation
        log.debug(
            "Fetch started",
            extra={"generation": token, "start": window.start_text, "end": window.end_text},
        )
        rows = await asyncio.to_thread(
            self._source.fetch_rows_in_range, window.start_text, window.end_text
        )
        if token != self._generation:
            log.info(
                "Discarding stale fetch",
                extra={"generation": token, "latest_generation": self._generation},
            )
            return None
        return LoadResult(window=window, rows=rows, generation=token)


__all__ = ["LoadResult", "RowSource", "ScheduleLoader"]
