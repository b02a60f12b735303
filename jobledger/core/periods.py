"""Calendar arithmetic shared by the chart and percentage calculations."""
from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from pathlib import Path
from zoneinfo import ZoneInfo

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

DEFAULT_PERIOD_TABLE: dict[str, dict] = {
    "chart_buckets": {"day": 7, "week": 4, "month": 6, "year": 3},
    "lookback": {"day": 7, "week": 4, "month": 6, "year": 3},
    "breakdown": {"months_before": 3, "months_after": 2},
    "trailing": {"window_days": 30, "previous_start_days": 60, "previous_end_days": 31},
    "y_axis": {"headroom": "1.2", "step": 1000, "floor": 1000},
}


def _load_period_table() -> dict[str, dict]:
    path = CONFIG_DIR / "periods.yaml"
    table = {section: dict(values) for section, values in DEFAULT_PERIOD_TABLE.items()}
    if not path.exists():
        return table
    with path.open("r", encoding="utf-8") as fp:
        loaded = yaml.safe_load(fp) or {}
    for section, values in loaded.items():
        if isinstance(values, dict):
            table.setdefault(section, {}).update(values)
    return table


PERIOD_TABLE = _load_period_table()


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    SIX_MONTHS = "six_months"


_GRANULARITY_ALIASES = {
    "last 6 months": Granularity.SIX_MONTHS,
    "last_6_months": Granularity.SIX_MONTHS,
    "6m": Granularity.SIX_MONTHS,
}


def parse_granularity(value: str | Granularity | None) -> Granularity:
    """Resolve user input such as ``"Week"`` or ``"Last 6 months"``."""

    if value is None:
        return Granularity.SIX_MONTHS
    if isinstance(value, Granularity):
        return value
    key = value.strip().lower()
    if key in _GRANULARITY_ALIASES:
        return _GRANULARITY_ALIASES[key]
    try:
        return Granularity(key)
    except ValueError:
        raise ValueError(f"unknown granularity: {value!r}") from None


def to_local(value: datetime, tz: str | tzinfo | None = None) -> datetime:
    """Return a naive datetime expressed in ``tz``.

    Naive inputs are assumed to be local already and are returned unchanged.
    """

    if value.tzinfo is None:
        return value
    if isinstance(tz, str):
        zone: tzinfo = ZoneInfo(tz)
    else:
        zone = tz or timezone.utc
    return value.astimezone(zone).replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_years(value: datetime, years: int) -> datetime:
    year = value.year + years
    day = min(value.day, calendar.monthrange(year, value.month)[1])
    return value.replace(year=year, day=day)


def start_of(value: datetime, granularity: Granularity, first_weekday: int = 0) -> datetime:
    day = value.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity is Granularity.DAY:
        return day
    if granularity is Granularity.WEEK:
        return day - timedelta(days=(day.weekday() - first_weekday) % 7)
    if granularity is Granularity.MONTH:
        return day.replace(day=1)
    if granularity is Granularity.YEAR:
        return day.replace(month=1, day=1)
    raise ValueError(f"{granularity.value} is not a calendar granularity")


def shift(value: datetime, granularity: Granularity, count: int) -> datetime:
    if granularity is Granularity.DAY:
        return value + timedelta(days=count)
    if granularity is Granularity.WEEK:
        return value + timedelta(weeks=count)
    if granularity is Granularity.MONTH:
        return add_months(value, count)
    if granularity is Granularity.YEAR:
        return add_years(value, count)
    raise ValueError(f"{granularity.value} is not a calendar granularity")


def period_bounds(value: datetime, granularity: Granularity, first_weekday: int = 0) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` interval of the period containing ``value``."""

    start = start_of(value, granularity, first_weekday)
    return start, shift(start, granularity, 1)


def period_label(value: datetime, granularity: Granularity) -> str:
    if granularity is Granularity.DAY:
        return value.strftime("%a")
    if granularity is Granularity.WEEK:
        return f"{value:%b} {value.day}"
    if granularity is Granularity.YEAR:
        return f"{value.year:04d}"
    return value.strftime("%b")
