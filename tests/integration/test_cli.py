"""CLI tests over a seeded SQLite file."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from checkschedule.config import get_settings
from checkschedule.main import app

runner = CliRunner(env={"COLUMNS": "400"})


@pytest.fixture
def db_arg(db_path):
    return ["--db", str(db_path)]


def test_dates_lists_known_dates(db_arg):
    result = runner.invoke(app, ["dates", *db_arg])

    assert result.exit_code == 0
    assert "2025/11/17" in result.output
    assert "2025/11/24" in result.output


def test_pivot_for_week(db_arg):
    result = runner.invoke(app, ["pivot", "--date", "2025/11/19", *db_arg])

    assert result.exit_code == 0
    assert "Window 2025/11/17 ~ 2025/11/23" in result.output
    assert "의류" in result.output
    assert "GS홈쇼핑" in result.output


def test_pivot_filter_and_expand(db_arg):
    result = runner.invoke(
        app,
        ["pivot", "-d", "2025/11/17", "-f", "broadcaster=CJ온스타일", "-e", "의류>아우터", *db_arg],
    )

    assert result.exit_code == 0
    assert "B브랜드" in result.output
    assert "A브랜드" not in result.output


def test_pivot_rejects_unknown_dimension(db_arg):
    result = runner.invoke(app, ["pivot", "-f", "colour=red", *db_arg])

    assert result.exit_code != 0


def test_pivot_rejects_half_range(db_arg):
    result = runner.invoke(app, ["pivot", "--start", "2025/11/17", *db_arg])

    assert result.exit_code != 0


def test_grid_shows_week(db_arg):
    result = runner.invoke(app, ["grid", "--date", "2025/11/23", "--expand-all", *db_arg])

    assert result.exit_code == 0
    assert "2025/11/17 ~ 2025/11/23" in result.output
    assert "겨울 아우터 특집" in result.output


def test_grid_rejects_bad_cell(db_arg):
    result = runner.invoke(app, ["grid", "--expand-cell", "2025/11/17@25", *db_arg])

    assert result.exit_code != 0


def test_detail_for_competitor_slot(db_arg):
    result = runner.invoke(app, ["detail", "3", "--competitor", *db_arg])

    assert result.exit_code == 0
    assert "D 홍삼" in result.output


def test_detail_for_self_only_row_rejects_competitor(db_arg):
    result = runner.invoke(app, ["detail", "4", "--competitor", *db_arg])

    assert result.exit_code == 1


def test_detail_for_missing_row(db_arg):
    result = runner.invoke(app, ["detail", "999", *db_arg])

    assert result.exit_code == 1


def test_detail_and_grid_share_self_channel_name(db_arg):
    env = {"COLUMNS": "400", "SELF_CHANNEL_NAME": "MyShop"}
    get_settings.cache_clear()
    try:
        detail = runner.invoke(app, ["detail", "4", *db_arg], env=env)
        grid = runner.invoke(app, ["grid", "--date", "2025/11/23", *db_arg], env=env)
    finally:
        get_settings.cache_clear()

    assert detail.exit_code == 0
    assert "MyShop" in detail.output
    assert grid.exit_code == 0
    assert "[MyShop]" in grid.output
