from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from checkschedule.domain.models import Dimension, ScheduleRow


def test_blank_text_becomes_missing():
    row = ScheduleRow.model_validate(
        {"id": 1, "other_broad_name": "   ", "brand_name": b"A\xeb\xb8\x8c", "prog_name": " 특집 "}
    )

    assert row.other_broad_name is None
    assert not row.has_competitor
    assert row.brand_name.startswith("A")
    assert row.prog_name == "특집"


@pytest.mark.parametrize(
    "raw, expected",
    [("90", 90.0), ("1,200", 1200.0), ("abc", 0.0), (None, 0.0), (float("nan"), 0.0), (True, 0.0)],
)
def test_weights_are_parsed_leniently(raw, expected):
    assert ScheduleRow.model_validate({"id": 1, "weights_time": raw}).weights_time == expected


def test_integer_fields_drop_unreadable_values():
    row = ScheduleRow.model_validate({"id": 1, "product_sale_price": "89,000", "match_score": "n/a"})

    assert row.product_sale_price == 89000
    assert row.match_score is None


def test_rows_are_frozen():
    row = ScheduleRow.model_validate({"id": 1})

    with pytest.raises(ValidationError):
        row.brand_name = "X"


def test_id_is_required():
    with pytest.raises(ValidationError):
        ScheduleRow.model_validate({"brand_name": "X"})


def test_from_record_fills_empty_columns_from_raw_data():
    record = {
        "id": 3,
        "bd_date": "2025/11/17",
        "brand_name": "",
        "other_mgroup_name": "의류",
        "raw_data": json.dumps(
            {
                "BRAND_NAME": "A브랜드",
                "OTHER_MGROUPN_NAME": "무시됨",
                "OTHER_BROAD_NAME": "GS홈쇼핑",
                "WEIGHTS_TIME": "45",
            },
            ensure_ascii=False,
        ),
    }

    row = ScheduleRow.from_record(record)

    assert row.brand_name == "A브랜드"
    assert row.other_mgroup_name == "의류"
    assert row.other_broad_name == "GS홈쇼핑"
    assert row.weights_time == 45.0


@pytest.mark.parametrize("blob", ["{not json", "[1, 2]", None, ""])
def test_from_record_ignores_unusable_raw_data(blob):
    row = ScheduleRow.from_record({"id": 9, "brand_name": "B", "raw_data": blob})

    assert row.brand_name == "B"


def test_dimension_field_names_match_row_fields():
    for dimension in Dimension:
        assert dimension.field_name in ScheduleRow.model_fields
