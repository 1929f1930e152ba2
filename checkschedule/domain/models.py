"""
Domain models for CheckSchedule.

Defines the schedule row schema aligned with the `schedules` table. Rows are
validated once, at the store boundary, into a frozen model; every field that
comes from a spreadsheet import is optional and validated leniently so that a
malformed cell degrades to "missing" instead of raising.
"""
from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

# Default display name of the broadcaster whose own schedule is compared.
SELF_CHANNEL_NAME = "신세계"

# Legacy databases keep most classification fields only inside the JSON
# `raw_data` column, under the spreadsheet's upper-case headers.
RAW_DATA_KEYS: Dict[str, str] = {
    "exec_date": "EXEC_DATE",
    "prog_name": "G_PROG_NAME",
    "md_name": "MD_NAME",
    "other_broad_name": "OTHER_BROAD_NAME",
    "other_btime": "OTHER_BTIME",
    "other_etime": "OTHER_ETIME",
    "other_lgroup_name": "OTHER_LGROUPN_NAME",
    "other_mgroup_name": "OTHER_MGROUPN_NAME",
    "other_sgroup_name": "OTHER_SGROUPN_NAME",
    "brand_name": "BRAND_NAME",
    "other_product_name": "OTHER_PRODUCT_NAME",
    "other_item_desc": "OTHER_ITEM_DESC",
    "product_sale_price": "PRODUCT_SALE_PRICE",
    "match_score": "MATCH_SCORE",
    "sche_sml_score": "SCHE_SML_SCORE",
    "item_sml_score": "ITEM_SML_SCORE",
    "comp_alert": "COMP_ALERT",
    "weights_time": "WEIGHTS_TIME",
}

TEXT_FIELDS = (
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
    "comp_alert",
)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


class Origin(str, Enum):
    """Which side of a row a grid entry was taken from."""

    SELF = "self"
    COMPETITOR = "competitor"


class Dimension(str, Enum):
    """Filterable pivot dimensions and the row field each one reads."""

    BROADCASTER = "broadcaster"
    MID = "mid"
    SMALL = "small"
    BRAND = "brand"
    PRODUCT = "product"
    MD = "md"

    @property
    def field_name(self) -> str:
        return _DIMENSION_FIELDS[self]


_DIMENSION_FIELDS: Dict[Dimension, str] = {
    Dimension.BROADCASTER: "other_broad_name",
    Dimension.MID: "other_mgroup_name",
    Dimension.SMALL: "other_sgroup_name",
    Dimension.BRAND: "brand_name",
    Dimension.PRODUCT: "other_product_name",
    Dimension.MD: "md_name",
}


class ScheduleRow(BaseModel):
    """
    Representation of a single row in the `schedules` table.

    A row pairs at most one self-broadcast slot with at most one competitor
    slot; a row without `other_broad_name` is self-only.
    """

    id: int = Field(..., description="Primary key, assigned at import.")
    exec_date: Optional[str] = Field(None, description="Import run date.")
    bd_date: Optional[str] = Field(None, description="Self slot date, YYYY/MM/DD.")
    bd_btime: Optional[str] = Field(None, description="Self slot start, HH:MM[:SS].")
    bd_etime: Optional[str] = Field(None, description="Self slot end, HH:MM[:SS].")
    prog_name: Optional[str] = Field(None, description="Self program name.")
    md_name: Optional[str] = Field(None, description="Self MD category.")
    other_broad_name: Optional[str] = Field(None, description="Competitor broadcaster.")
    other_btime: Optional[str] = Field(None, description="Competitor slot start.")
    other_etime: Optional[str] = Field(None, description="Competitor slot end.")
    other_lgroup_name: Optional[str] = Field(None, description="Competitor category, level 1.")
    other_mgroup_name: Optional[str] = Field(None, description="Competitor category, level 2.")
    other_sgroup_name: Optional[str] = Field(None, description="Competitor category, level 3.")
    brand_name: Optional[str] = Field(None, description="Competitor brand.")
    other_product_name: Optional[str] = Field(None, description="Competitor product name.")
    other_item_desc: Optional[str] = Field(None, description="Competitor item description.")
    product_sale_price: Optional[int] = Field(None, description="Competitor sale price.")
    match_score: Optional[int] = Field(None, description="Import match score.")
    sche_sml_score: float = Field(0.0, description="Schedule similarity score.")
    item_sml_score: float = Field(0.0, description="Item similarity score.")
    comp_alert: Optional[str] = Field(None, description="Free-text alert note.")
    weights_time: float = Field(0.0, description="Weighted minutes (pivot measure).")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _blank_text_is_missing(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            value = value.decode("utf-8", errors="replace")
        text = str(value).strip()
        return text or None

    @field_validator("sche_sml_score", "item_sml_score", "weights_time", mode="before")
    @classmethod
    def _lenient_float(cls, value: Any) -> float:
        number = _to_float(value)
        return 0.0 if number is None else number

    @field_validator("product_sale_price", "match_score", mode="before")
    @classmethod
    def _lenient_int(cls, value: Any) -> Optional[int]:
        number = _to_float(value)
        return None if number is None else int(number)

    @property
    def has_competitor(self) -> bool:
        return bool(self.other_broad_name)

    @property
    def has_alert_note(self) -> bool:
        return bool(self.comp_alert)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ScheduleRow":
        """
        Build a row from a database record.

        Columns that are absent or empty are filled from the legacy
        `raw_data` JSON blob when one is present; an unreadable blob is
        ignored.
        """
        values: Dict[str, Any] = {key: record[key] for key in record.keys()}
        raw = _load_raw_data(values.pop("raw_data", None))
        for field_name, raw_key in RAW_DATA_KEYS.items():
            current = values.get(field_name)
            if (current is None or current == "") and raw.get(raw_key) not in (None, ""):
                values[field_name] = raw[raw_key]
        return cls.model_validate(values)


def _load_raw_data(blob: Any) -> Dict[str, Any]:
    if not blob:
        return {}
    try:
        parsed = json.loads(blob)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


__all__ = ["Dimension", "Origin", "RAW_DATA_KEYS", "SELF_CHANNEL_NAME", "ScheduleRow", "TEXT_FIELDS"]
