"""
Pytest configuration for CheckSchedule.

Provides fixtures for:
- Building schedule rows with sensible defaults
- A temporary SQLite store seeded with a small week of data
- Settings override for tests
"""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest

from checkschedule.config import Settings
from checkschedule.domain.models import ScheduleRow
from checkschedule.infrastructure.store import ScheduleStore

RowFactory = Callable[..., ScheduleRow]


@pytest.fixture
def make_row() -> RowFactory:
    """
    Factory for ScheduleRow instances with incrementing ids.

    Keyword arguments override fields; everything else is left missing.
    """
    ids = itertools.count(1)

    def _make(**fields: Any) -> ScheduleRow:
        fields.setdefault("id", next(ids))
        return ScheduleRow.model_validate(fields)

    return _make


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the stock display rules and no .env influence."""
    return Settings(
        _env_file=None,
        db_path=":memory:",
        log_level="DEBUG",
        grid_display_cap=3,
        pivot_top_n=5,
        sche_sml_threshold=6.0,
        item_sml_threshold=1.5,
    )


def seed_records() -> List[Dict[str, Any]]:
    """A week (2025/11/17 - 2025/11/23) of hand-written rows plus one row outside it."""
    return [
        {
            "bd_date": "2025/11/17",
            "bd_btime": "09:00:00",
            "bd_etime": "10:00:00",
            "prog_name": "겨울 아우터 특집",
            "md_name": "패션",
            "other_broad_name": "GS홈쇼핑",
            "other_btime": "09:10:00",
            "other_etime": "10:10:00",
            "other_mgroup_name": "의류",
            "other_sgroup_name": "아우터",
            "brand_name": "A브랜드",
            "other_product_name": "A 패딩",
            "sche_sml_score": 7.2,
            "item_sml_score": 0.4,
            "weights_time": 60,
        },
        {
            "bd_date": "2025/11/17",
            "bd_btime": "09:00:00",
            "bd_etime": "10:00:00",
            "prog_name": "겨울 아우터 특집",
            "md_name": "패션",
            "other_broad_name": "CJ온스타일",
            "other_btime": "08:50:00",
            "other_etime": "09:50:00",
            "other_mgroup_name": "의류",
            "other_sgroup_name": "아우터",
            "brand_name": "B브랜드",
            "other_product_name": "B 코트",
            "weights_time": 50,
        },
        {
            "bd_date": "2025/11/19",
            "bd_btime": "21:00:00",
            "bd_etime": "22:00:00",
            "prog_name": "건강식품 기획전",
            "md_name": "푸드",
            "other_broad_name": "GS홈쇼핑",
            "other_btime": "21:30:00",
            "other_etime": "22:30:00",
            "other_mgroup_name": "식품",
            "other_sgroup_name": "건강식품",
            "brand_name": "D브랜드",
            "other_product_name": "D 홍삼",
            "product_sale_price": 89000,
            "comp_alert": "동시간대 유사상품",
            "weights_time": 30,
        },
        {
            "bd_date": "2025/11/23",
            "bd_btime": "23:30:00",
            "bd_etime": "00:30:00",
            "prog_name": "심야 리빙",
            "md_name": "리빙",
        },
        {
            "bd_date": "2025/11/24",
            "bd_btime": "10:00:00",
            "bd_etime": "11:00:00",
            "prog_name": "다음 주 방송",
            "md_name": "리빙",
        },
    ]


@pytest.fixture
def week_rows() -> List[ScheduleRow]:
    """The in-week seed records as validated rows (ids 1..4)."""
    return [
        ScheduleRow.model_validate({"id": index, **record})
        for index, record in enumerate(seed_records()[:4], start=1)
    ]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite file with the schema created and `seed_records()` loaded."""
    path = tmp_path / "schedule.db"
    with ScheduleStore(path, retry_attempts=1) as store:
        store.initialize_schema()
        store.insert_rows(seed_records())
    return path


@pytest.fixture
def store(db_path: Path) -> Generator[ScheduleStore, None, None]:
    """Open store over the seeded database, closed after the test."""
    with ScheduleStore(db_path, retry_attempts=1) as opened:
        yield opened
