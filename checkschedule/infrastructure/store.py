"""
SQLite schedule store for CheckSchedule.

The store owns one connection with an explicit lifecycle: construct it,
`open()` it (or use it as a context manager), read, and `close()` it. There
is no module-level connection. Reads go through a lock so the connection can
be used from the worker thread the async loader runs fetches on.

Includes retry logic for transient "database is locked" failures using
tenacity.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from types import TracebackType
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Type

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from checkschedule.config import get_settings
from checkschedule.domain.errors import StoreNotOpenError
from checkschedule.domain.models import ScheduleRow
from checkschedule.utils.logging import get_logger

log = get_logger(__name__)

TABLE_NAME = "schedules"

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    exec_date TEXT,
    bd_date TEXT,
    bd_btime TEXT,
    bd_etime TEXT,
    prog_name TEXT,
    md_name TEXT,
    other_broad_name TEXT,
    other_btime TEXT,
    other_etime TEXT,
    other_lgroup_name TEXT,
    other_mgroup_name TEXT,
    other_sgroup_name TEXT,
    brand_name TEXT,
    other_product_name TEXT,
    other_item_desc TEXT,
    product_sale_price INTEGER,
    match_score INTEGER,
    sche_sml_score REAL,
    item_sml_score REAL,
    comp_alert TEXT,
    weights_time REAL,
    raw_data TEXT
);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_bd_date ON {TABLE_NAME} (bd_date, bd_btime);
"""

INSERT_COLUMNS: Sequence[str] = (
    "exec_date",
    "bd_date",
    "bd_btime",
    "bd_etime",
    "prog_name",
    "md_name",
    "other_broad_name",
    "other_btime",
    "other_etime",
    "other_lgroup_name",
    "other_mgroup_name",
    "other_sgroup_name",
    "brand_name",
    "other_product_name",
    "other_item_desc",
    "product_sale_price",
    "match_score",
    "sche_sml_score",
    "item_sml_score",
    "comp_alert",
    "weights_time",
    "raw_data",
)


def _is_transient(exc: BaseException) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


class _TransientOperationalError(Exception):
    """Wraps a retryable sqlite3.OperationalError so tenacity can target it."""

    def __init__(self, original: sqlite3.OperationalError) -> None:
        super().__init__(str(original))
        self.original = original


class ScheduleStore:
    """
    Read-mostly access to the `schedules` table.

    Example
    -------
        with ScheduleStore("schedule.db") as store:
            dates = store.fetch_distinct_dates()
            rows = store.fetch_rows_in_range("2025/11/17", "2025/11/23")
    """

    def __init__(
        self,
        db_path: Optional[str | Path] = None,
        retry_attempts: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.db_path = str(db_path if db_path is not None else settings.db_path)
        self.retry_attempts = retry_attempts or settings.db_retry_attempts
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    # Lifecycle

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "ScheduleStore":
        """Open the connection (idempotent)."""
        with self._lock:
            if self._conn is None:
                self._conn = self._with_retry(self._connect)
                log.debug("Schedule store opened", extra={"db_path": self.db_path})
        return self

    def close(self) -> None:
        """Close the connection; safe to call more than once."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                log.debug("Schedule store closed", extra={"db_path": self.db_path})

    def __enter__(self) -> "ScheduleStore":
        return self.open()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreNotOpenError(f"Schedule store '{self.db_path}' is not open.")
        return self._conn

    def _with_retry(self, func, *args: Any) -> Any:
        """
        Run `func`, retrying transient lock errors with exponential backoff.

        Non-transient operational errors and the final failed attempt are
        re-raised as the original sqlite3 exception.
        """

        def attempt() -> Any:
            try:
                return func(*args)
            except sqlite3.OperationalError as exc:
                if _is_transient(exc):
                    raise _TransientOperationalError(exc) from exc
                raise

        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type(_TransientOperationalError),
            reraise=True,
        )
        try:
            return retrying(attempt)
        except _TransientOperationalError as exc:
            log.error(
                "Schedule store still locked after retries",
                extra={"db_path": self.db_path, "attempts": self.retry_attempts},
            )
            raise exc.original from exc

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        def run() -> List[sqlite3.Row]:
            with self._lock:
                conn = self._require_conn()
                return conn.execute(sql, tuple(params)).fetchall()

        return self._with_retry(run)

    # Reads

    def fetch_distinct_dates(self) -> List[str]:
        """Distinct broadcast dates, ascending."""
        rows = self._query(
            f"SELECT DISTINCT bd_date FROM {TABLE_NAME} "
            "WHERE bd_date IS NOT NULL AND bd_date != '' ORDER BY bd_date ASC"
        )
        return [row["bd_date"] for row in rows]

    def fetch_rows_in_range(self, start: str, end: str) -> List[ScheduleRow]:
        """
        Rows whose `bd_date` lies in [start, end], ordered by date then start time.

        Dates are `YYYY/MM/DD`, so string comparison orders them correctly.
        """
        records = self._query(
            f"SELECT * FROM {TABLE_NAME} WHERE bd_date >= ? AND bd_date <= ? "
            "ORDER BY bd_date ASC, bd_btime ASC",
            (start, end),
        )
        rows = [ScheduleRow.from_record(record) for record in records]
        log.info("Rows fetched", extra={"start": start, "end": end, "rows": len(rows)})
        return rows

    def fetch_rows_for_date(self, day: str) -> List[ScheduleRow]:
        """Rows for a single broadcast date, ordered by start time."""
        records = self._query(
            f"SELECT * FROM {TABLE_NAME} WHERE bd_date = ? ORDER BY bd_btime ASC",
            (day,),
        )
        return [ScheduleRow.from_record(record) for record in records]

    def fetch_row(self, row_id: int) -> Optional[ScheduleRow]:
        records = self._query(f"SELECT * FROM {TABLE_NAME} WHERE id = ?", (row_id,))
        return ScheduleRow.from_record(records[0]) if records else None

    # Seeding

    def initialize_schema(self) -> None:
        """Create the table and its date index if they do not exist."""

        def run() -> None:
            with self._lock:
                conn = self._require_conn()
                conn.executescript(SCHEMA_SQL)
                conn.commit()

        self._with_retry(run)

    def insert_rows(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """
        Insert raw records in one transaction and return how many were written.

        Keys outside the table's columns are ignored; missing keys insert NULL.
        """
        placeholders = ", ".join("?" for _ in INSERT_COLUMNS)
        sql = f"INSERT INTO {TABLE_NAME} ({', '.join(INSERT_COLUMNS)}) VALUES ({placeholders})"
        payload = [tuple(row.get(column) for column in INSERT_COLUMNS) for row in rows]

        def run() -> int:
            with self._lock:
                conn = self._require_conn()
                with conn:
                    conn.executemany(sql, payload)
                return len(payload)

        inserted = self._with_retry(run)
        log.info("Rows inserted", extra={"rows": inserted, "db_path": self.db_path})
        return inserted


__all__ = ["INSERT_COLUMNS", "SCHEMA_SQL", "TABLE_NAME", "ScheduleStore"]
