"""
runwindow/config.py

Scheduler configuration via Pydantic Settings.
All values can be overridden with RUNWINDOW_* environment variables or a .env file.

Quick start - create a .env file in your project root:
    RUNWINDOW_WINDOW_MILLIS=250
    RUNWINDOW_EXECUTOR=myproject.tasks:runner
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WINDOW_MILLIS: float = 500.0


def coerce_window_millis(value: Any, default: float = DEFAULT_WINDOW_MILLIS) -> float:
    """
    Coerce a window length to a positive number of milliseconds.

    Non-numeric, non-finite, zero and negative values fall back to `default`
    instead of raising.
    """
    if isinstance(value, bool):
        return default
    try:
        millis = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(millis) or millis <= 0:
        return default
    return millis


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RUNWINDOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Debounce window applied by Aggregator when no explicit window is given
    WINDOW_MILLIS: float = DEFAULT_WINDOW_MILLIS

    # Executor plugin - "package.module:attr"; empty → a fresh TaskRunner
    EXECUTOR: str = ""

    @field_validator("WINDOW_MILLIS", mode="before")
    @classmethod
    def parse_window(cls, v):
        return coerce_window_millis(v)

    @field_validator("EXECUTOR", mode="before")
    @classmethod
    def strip_executor(cls, v):
        if v is None:
            return ""
        return str(v).strip()


settings = Settings()
