"""
Configuration settings for CheckSchedule.

Uses Pydantic Settings to load environment variables for the schedule store
location, logging, and the display rules of the pivot and weekly grid.
"""
from __future__ import annotations

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from checkschedule.domain.models import SELF_CHANNEL_NAME


class Settings(BaseSettings):
    # Schedule store
    db_path: str = Field("schedule.db", alias="DB_PATH")
    db_retry_attempts: int = Field(3, alias="DB_RETRY_ATTEMPTS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Display rules
    self_channel_name: str = Field(SELF_CHANNEL_NAME, alias="SELF_CHANNEL_NAME")
    grid_display_cap: int = Field(3, alias="GRID_DISPLAY_CAP")
    pivot_top_n: int = Field(5, alias="PIVOT_TOP_N")
    sche_sml_threshold: float = Field(6.0, alias="SCHE_SML_THRESHOLD")
    item_sml_threshold: float = Field(1.5, alias="ITEM_SML_THRESHOLD")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
