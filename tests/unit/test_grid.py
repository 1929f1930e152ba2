from __future__ import annotations

from datetime import date

import pytest

from checkschedule.domain.models import SELF_CHANNEL_NAME, Origin
from checkschedule.engine.grid import (
    NO_PRODUCT_NAME,
    NO_SELF_PROGRAM,
    AlertThresholds,
    GridEntry,
    collapse_entries,
    compute_grid,
    dedupe_entries,
    is_alert,
    sort_entries,
)

WEEK_START = date(2025, 11, 17)
DAY = "2025/11/17"


def competitor(make_row, btime, **fields):
    fields.setdefault("bd_date", DAY)
    fields.setdefault("bd_btime", "09:00:00")
    fields.setdefault("other_broad_name", "GS홈쇼핑")
    return GridEntry(origin=Origin.COMPETITOR, row=make_row(other_btime=btime, **fields))


class TestAlertPredicate:
    def test_schedule_score_threshold(self, make_row):
        assert is_alert(competitor(make_row, "09:00", sche_sml_score=6.0))
        assert not is_alert(competitor(make_row, "09:00", sche_sml_score=5.99))

    def test_item_score_threshold(self, make_row):
        assert is_alert(competitor(make_row, "09:00", item_sml_score=1.5))
        assert not is_alert(competitor(make_row, "09:00", item_sml_score=1.49))

    def test_alert_note_marks_entry(self, make_row):
        assert is_alert(competitor(make_row, "09:00", comp_alert="유사상품"))

    def test_self_entry_ignores_scores(self, make_row):
        row = make_row(bd_btime="09:00", sche_sml_score=9.0, other_broad_name="GS홈쇼핑")
        assert not is_alert(GridEntry(origin=Origin.SELF, row=row))

    def test_custom_thresholds(self, make_row):
        entry = competitor(make_row, "09:00", sche_sml_score=4.0)
        assert is_alert(entry, AlertThresholds(sche_sml_score=4.0, item_sml_score=9.0))


def test_dedupe_keeps_first_self_entry_per_start_time(make_row):
    rows = [make_row(bd_btime="09:00:00", prog_name=f"p{i}") for i in range(3)]
    entries = [GridEntry(origin=Origin.SELF, row=row) for row in rows]
    entries.append(competitor(make_row, "09:10"))
    entries.append(competitor(make_row, "09:10"))

    once = dedupe_entries(entries)

    assert [e.row.prog_name for e in once if e.is_self] == ["p0"]
    assert sum(1 for e in once if not e.is_self) == 2
    assert dedupe_entries(once) == once


def test_sort_is_stable_by_start_time(make_row):
    entries = [
        competitor(make_row, "09:40", other_product_name="late"),
        competitor(make_row, "09:05", other_product_name="first"),
        competitor(make_row, "09:05", other_product_name="second"),
    ]

    ordered = sort_entries(entries)

    assert [e.product_name for e in ordered] == ["first", "second", "late"]


class TestCollapse:
    def test_five_entries_one_alert_cap_three(self, make_row):
        entries = sort_entries(
            [
                competitor(make_row, "09:00", other_product_name="a"),
                competitor(make_row, "09:10", other_product_name="b"),
                competitor(make_row, "09:20", other_product_name="c"),
                competitor(make_row, "09:30", other_product_name="d"),
                competitor(make_row, "09:40", other_product_name="alert", sche_sml_score=8.0),
            ]
        )

        visible = collapse_entries(entries, display_cap=3)

        assert [e.product_name for e in visible] == ["a", "b", "alert"]
        assert len(entries) - len(visible) == 2

    def test_alerts_are_never_hidden(self, make_row):
        entries = [
            competitor(make_row, f"09:{minute:02d}", item_sml_score=2.0 if minute % 20 == 0 else 0.0)
            for minute in range(0, 60, 10)
        ]

        visible = collapse_entries(entries, display_cap=2)

        assert all(e in visible for e in entries if is_alert(e))

    def test_alerts_may_exceed_cap(self, make_row):
        entries = [competitor(make_row, f"09:{m:02d}", comp_alert="x") for m in range(0, 50, 10)]
        entries.append(competitor(make_row, "09:55"))

        visible = collapse_entries(entries, display_cap=3)

        assert len(visible) == 5
        assert all(is_alert(e) for e in visible)

    def test_small_cells_show_everything(self, make_row):
        entries = [competitor(make_row, "09:00"), competitor(make_row, "09:30")]

        assert collapse_entries(entries, display_cap=3) == entries


def test_compute_grid_places_self_and_competitor_by_own_hour(make_row):
    row = make_row(
        bd_date=DAY,
        bd_btime="09:00:00",
        bd_etime="10:00:00",
        other_broad_name="CJ온스타일",
        other_btime="08:50:00",
        other_etime="09:50:00",
    )

    grid = compute_grid([row], WEEK_START)

    assert [e.origin for e in grid.cell(DAY, 9).entries] == [Origin.SELF]
    assert [e.origin for e in grid.cell(DAY, 8).entries] == [Origin.COMPETITOR]
    assert grid.cell(DAY, 8).entries[0].channel_label == "CJ"
    assert grid.entry_count() == 2


def test_compute_grid_skips_rows_outside_window(make_row):
    rows = [
        make_row(bd_date="2025/11/24", bd_btime="10:00"),
        make_row(bd_date="garbage", bd_btime="10:00"),
        make_row(bd_date="2025-11-18", bd_btime="10:00"),
    ]

    grid = compute_grid(rows, WEEK_START)

    assert grid.entry_count() == 1
    assert len(grid.cell("2025/11/18", 10).entries) == 1
    assert grid.dates[0] == DAY and grid.dates[-1] == "2025/11/23"
    assert grid.day_labels()[0] == (DAY, "월")


def test_compute_grid_collapses_busy_cells(make_row):
    rows = [
        make_row(bd_date=DAY, bd_btime="09:00", other_broad_name="GS홈쇼핑", other_btime=f"09:{m:02d}")
        for m in (0, 10, 20, 30, 40)
    ]

    cell = compute_grid(rows, WEEK_START, display_cap=3).cell(DAY, 9)

    # one deduplicated self entry plus five competitor entries
    assert len(cell.entries) == 6
    assert len(cell.visible()) == 3
    assert cell.hidden_count == 3
    assert len(cell.visible(expanded=True)) == 6


class TestMissingTimes:
    def test_missing_start_lands_in_hour_zero(self, make_row):
        row = make_row(bd_date=DAY, prog_name="심야")

        grid = compute_grid([row], WEEK_START)
        entry = grid.cell(DAY, 0).entries[0]

        assert entry.hour == 0
        assert entry.time_range == "--:-- ~ --:--"
        assert entry.duration_minutes == 0

    def test_out_of_range_clock_is_unparseable(self, make_row):
        entry = GridEntry(origin=Origin.SELF, row=make_row(bd_btime="25:00", bd_etime="26:00"))

        assert entry.hour == 0
        assert entry.duration_minutes == 0


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("09:00:00", "10:30:00", 90),
        ("23:30:00", "00:30:00", 60),
        ("00:00:00", "01:00:00", 60),
        ("10:00:00", None, 0),
    ],
)
def test_entry_duration(make_row, start, end, expected):
    entry = GridEntry(origin=Origin.SELF, row=make_row(bd_btime=start, bd_etime=end))

    assert entry.duration_minutes == expected


def test_entry_fallback_labels(make_row):
    row = make_row(other_broad_name="신규홈쇼핑")

    assert GridEntry(origin=Origin.SELF, row=row).product_name == NO_SELF_PROGRAM
    assert GridEntry(origin=Origin.SELF, row=row).channel_label == SELF_CHANNEL_NAME
    assert GridEntry(origin=Origin.COMPETITOR, row=row).product_name == NO_PRODUCT_NAME
    assert GridEntry(origin=Origin.COMPETITOR, row=row).channel_label == "신규홈쇼핑"


def test_compute_grid_labels_self_entries_with_given_name(make_row):
    row = make_row(bd_date=DAY, bd_btime="09:00", other_broad_name="GS홈쇼핑", other_btime="09:00")

    entries = compute_grid([row], WEEK_START, self_label="MyShop").cell(DAY, 9).entries

    assert [e.channel_label for e in entries] == ["MyShop", "GS"]
