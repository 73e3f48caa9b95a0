"""Calendar alignment for temporal bucketing.

Every bucket boundary is the local-time start of a calendar period (day, week,
month, year) in the configured IANA timezone. Timestamps without tzinfo are
treated as UTC.

Calendar arithmetic never raises: when a computation cannot be represented
(e.g. stepping past ``datetime.max``) the result degrades to the start of day
of the requested instant, and to the instant itself if even that fails.
"""

from __future__ import annotations

import calendar as _calendar
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

# date.weekday() values
_MONDAY = 0
_SUNDAY = 6


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def normalize_timezone_name(value: Any) -> str | None:
    """Normalize a timezone name and verify it's a valid IANA name."""
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.upper() == "UTC":
        return "UTC"
    try:
        ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    return raw


def resolve_timezone(value: Any) -> str:
    """Return a usable timezone name, falling back to UTC for unknown values."""
    normalized = normalize_timezone_name(value)
    if normalized:
        return normalized
    if value is not None:
        logger.warning(
            "Unknown timezone %r; using %s",
            value,
            DEFAULT_TIMEZONE,
            extra={"insights_timezone": value},
        )
    return DEFAULT_TIMEZONE


@dataclass(frozen=True)
class CalendarConfig:
    """Timezone and week-start convention used for all alignment."""

    timezone: str = DEFAULT_TIMEZONE
    week_starts_on_monday: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "timezone", resolve_timezone(self.timezone))

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def first_weekday(self) -> int:
        return _MONDAY if self.week_starts_on_monday else _SUNDAY

    def with_week_start(self, week_starts_on_monday: bool | None) -> "CalendarConfig":
        """Return a copy with the week-start convention overridden (None keeps it)."""
        if week_starts_on_monday is None or week_starts_on_monday == self.week_starts_on_monday:
            return self
        return replace(self, week_starts_on_monday=week_starts_on_monday)


def as_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def to_local(instant: datetime, config: CalendarConfig) -> datetime:
    """Project an instant into the configured timezone."""
    return as_aware(instant).astimezone(config.tzinfo)


def _local_midnight(day: date, config: CalendarConfig) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=config.tzinfo)


def _day_start(instant: datetime, config: CalendarConfig) -> datetime:
    return _local_midnight(to_local(instant, config).date(), config)


def _week_start(instant: datetime, config: CalendarConfig) -> datetime:
    day = to_local(instant, config).date()
    offset = (day.weekday() - config.first_weekday) % 7
    return _local_midnight(day - timedelta(days=offset), config)


def _month_start(instant: datetime, config: CalendarConfig) -> datetime:
    day = to_local(instant, config).date()
    return _local_midnight(day.replace(day=1), config)


def _year_start(instant: datetime, config: CalendarConfig) -> datetime:
    day = to_local(instant, config).date()
    return _local_midnight(date(day.year, 1, 1), config)


_ALIGNERS = {
    Granularity.DAY: _day_start,
    Granularity.WEEK: _week_start,
    Granularity.MONTH: _month_start,
    Granularity.YEAR: _year_start,
}


def fallback_start(instant: datetime, config: CalendarConfig) -> datetime:
    """Best-effort start of day for ``instant``; the instant itself if even that fails."""
    try:
        return _day_start(instant, config)
    except (OverflowError, ValueError):
        return instant


def align(instant: datetime, granularity: Granularity, config: CalendarConfig) -> datetime:
    """Truncate ``instant`` to the start of its calendar period."""
    try:
        return _ALIGNERS[granularity](instant, config)
    except (OverflowError, ValueError):
        logger.warning(
            "Calendar alignment failed; falling back to start of day",
            extra={
                "insights_instant": instant.isoformat(),
                "insights_granularity": granularity.value,
            },
        )
        return fallback_start(instant, config)


def start_of_day(instant: datetime, config: CalendarConfig) -> datetime:
    return align(instant, Granularity.DAY, config)


def start_of_week(instant: datetime, config: CalendarConfig) -> datetime:
    return align(instant, Granularity.WEEK, config)


def start_of_month(instant: datetime, config: CalendarConfig) -> datetime:
    return align(instant, Granularity.MONTH, config)


def start_of_year(instant: datetime, config: CalendarConfig) -> datetime:
    return align(instant, Granularity.YEAR, config)


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = _calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _shift_date(day: date, granularity: Granularity, count: int) -> date:
    if granularity is Granularity.DAY:
        return day + timedelta(days=count)
    if granularity is Granularity.WEEK:
        return day + timedelta(days=7 * count)
    if granularity is Granularity.MONTH:
        return _add_months(day, count)
    return _add_months(day, 12 * count)


def step(
    instant: datetime,
    granularity: Granularity,
    count: int,
    config: CalendarConfig,
) -> datetime:
    """Add ``count`` calendar units to ``instant``, keeping its local wall time.

    Month and year steps clamp the day to the target month's length
    (Jan 31 + 1 month = Feb 28/29).
    """
    try:
        local = to_local(instant, config)
        shifted = _shift_date(local.date(), granularity, count)
        return datetime.combine(shifted, local.timetz())
    except (OverflowError, ValueError):
        logger.warning(
            "Calendar arithmetic failed; falling back to start of day",
            extra={
                "insights_instant": instant.isoformat(),
                "insights_granularity": granularity.value,
                "insights_step": count,
            },
        )
        return fallback_start(instant, config)
