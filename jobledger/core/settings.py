"""Process configuration read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


@dataclass(frozen=True, slots=True)
class Settings:
    timezone: str = "UTC"
    first_weekday: int = 0
    surface_declines: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_weekday(value: str | None) -> int:
    if not value:
        return 0
    raw = value.strip().lower()
    if raw.isdigit():
        number = int(raw)
        if 0 <= number <= 6:
            return number
        raise ValueError(f"first weekday must be between 0 and 6, got {number}")
    if raw not in WEEKDAY_NAMES:
        raise ValueError(f"unknown weekday name: {value!r}")
    return WEEKDAY_NAMES[raw]


def _parse_timezone(value: str | None) -> str:
    if not value or not value.strip():
        return "UTC"
    name = value.strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"unknown timezone: {value!r}") from None
    return name


def get_settings() -> Settings:
    """Build settings from the current environment."""

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = list(DEFAULT_CORS_ORIGINS)

    return Settings(
        timezone=_parse_timezone(os.getenv("JOBLEDGER_TIMEZONE")),
        first_weekday=_parse_weekday(os.getenv("JOBLEDGER_FIRST_WEEKDAY")),
        surface_declines=_parse_bool(os.getenv("JOBLEDGER_SURFACE_DECLINES")),
        log_level=(os.getenv("JOBLEDGER_LOG_LEVEL") or "INFO").upper(),
        cors_origins=origins,
    )
