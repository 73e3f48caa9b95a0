"""Derived values for the Insights screen.

Consumes the weekly load calculator and the temporal aggregator and returns
plain values plus the display strings the screen shows. No state is kept:
every call reads the session snapshot it is given.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from .alignment import (
    CalendarConfig,
    Granularity,
    as_aware,
    start_of_day,
    start_of_month,
    step,
    to_local,
)
from .models import UserPreferences, WorkoutSession
from .temporal_aggregation import BucketCache, InsightRange, running_distance_buckets
from .training_load import TrainingLoadCalculator, WeeklyTrainingLoad

EMPTY_VALUE = "—"

# Indexed by date.weekday()
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


class DeltaDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    FLAT = "flat"
    UNAVAILABLE = "unavailable"


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def classify_delta(delta: float | None) -> DeltaDirection:
    if delta is None:
        return DeltaDirection.UNAVAILABLE
    rounded = round_half_away(delta)
    if rounded > 0:
        return DeltaDirection.INCREASE
    if rounded < 0:
        return DeltaDirection.DECREASE
    return DeltaDirection.FLAT


def format_delta(delta: float | None) -> str:
    direction = classify_delta(delta)
    if direction is DeltaDirection.UNAVAILABLE:
        return EMPTY_VALUE
    magnitude = abs(round_half_away(delta))
    if direction is DeltaDirection.INCREASE:
        return f"↑ {magnitude}%"
    if direction is DeltaDirection.DECREASE:
        return f"↓ {magnitude}%"
    return "0%"


def format_load(value: float) -> str:
    return f"{round_half_away(value):,}"


@dataclass(frozen=True)
class WeeklyInsights:
    this_week: WeeklyTrainingLoad
    last_week: WeeklyTrainingLoad
    delta_percent: float | None
    has_session_data: bool

    @property
    def delta_direction(self) -> DeltaDirection:
        return classify_delta(self.delta_percent)

    @property
    def delta_text(self) -> str:
        return format_delta(self.delta_percent)

    @property
    def total_load_text(self) -> str:
        return format_load(self.this_week.total_load) if self.has_session_data else EMPTY_VALUE

    @property
    def lifting_load_text(self) -> str:
        return format_load(self.this_week.lifting_load) if self.has_session_data else EMPTY_VALUE

    @property
    def running_load_text(self) -> str:
        return format_load(self.this_week.running_load) if self.has_session_data else EMPTY_VALUE

    @property
    def show_empty_week_hint(self) -> bool:
        return self.this_week.session_count == 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "has_session_data": self.has_session_data,
            "this_week": self.this_week.as_dict(),
            "last_week": self.last_week.as_dict(),
            "delta_percent": self.delta_percent,
            "delta_direction": self.delta_direction.value,
            "display": {
                "total_load": self.total_load_text,
                "lifting_load": self.lifting_load_text,
                "running_load": self.running_load_text,
                "delta": self.delta_text,
            },
            "show_empty_week_hint": self.show_empty_week_hint,
        }


def _resolve_calendar(
    calendar: CalendarConfig | None,
    preferences: UserPreferences | None,
) -> CalendarConfig:
    config = calendar or CalendarConfig()
    if preferences is not None:
        config = config.with_week_start(preferences.week_starts_on_monday)
    return config


def build_weekly_insights(
    sessions: Iterable[WorkoutSession],
    preferences: UserPreferences | None = None,
    *,
    calendar: CalendarConfig | None = None,
    now: datetime | None = None,
) -> WeeklyInsights:
    """Compute this week's load, last week's load and the change between them."""
    now = now if now is not None else datetime.now(timezone.utc)
    calculator = TrainingLoadCalculator(sessions, calendar=_resolve_calendar(calendar, preferences))

    this_week = calculator.weekly_load(now)
    previous_reference = step(this_week.week_start, Granularity.DAY, -7, calculator.calendar)
    last_week = calculator.weekly_load(previous_reference)

    has_session_data = bool(calculator.sessions)
    delta = None
    if has_session_data:
        delta = calculator.week_over_week_delta_percent(this_week.total_load, last_week.total_load)

    return WeeklyInsights(
        this_week=this_week,
        last_week=last_week,
        delta_percent=delta,
        has_session_data=has_session_data,
    )


@dataclass(frozen=True)
class ConsistencySummary:
    sessions_last_7_days: int
    most_common_weekday: str | None
    sessions_this_month: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "sessions_last_7_days": self.sessions_last_7_days,
            "most_common_weekday": self.most_common_weekday,
            "sessions_this_month": self.sessions_this_month,
        }


def build_consistency(
    sessions: Iterable[WorkoutSession],
    preferences: UserPreferences | None = None,
    *,
    calendar: CalendarConfig | None = None,
    now: datetime | None = None,
) -> ConsistencySummary:
    """Session counts for the last 7 days and this month, plus the busiest weekday.

    "Last 7 days" is today plus the six days before it. Weekday ties go to the
    day that comes first in the configured week.
    """
    config = _resolve_calendar(calendar, preferences)
    now = as_aware(now if now is not None else datetime.now(timezone.utc))
    completed = [as_aware(s.completed_at) for s in sessions]

    window_start = step(start_of_day(now, config), Granularity.DAY, -6, config)
    last_7 = sum(1 for ts in completed if window_start <= ts <= now)

    month_start = start_of_month(now, config)
    month_end = step(month_start, Granularity.MONTH, 1, config)
    this_month = sum(1 for ts in completed if month_start <= ts < month_end)

    most_common = None
    if completed:
        counts = Counter(to_local(ts, config).weekday() for ts in completed)
        week_order = [(config.first_weekday + offset) % 7 for offset in range(7)]
        best = max(week_order, key=lambda day: (counts[day], -week_order.index(day)))
        most_common = WEEKDAY_NAMES[best]

    return ConsistencySummary(
        sessions_last_7_days=last_7,
        most_common_weekday=most_common,
        sessions_this_month=this_month,
    )


def cumulative_distance_series(
    sessions: Iterable[WorkoutSession],
    insight_range: InsightRange,
    preferences: UserPreferences | None = None,
    *,
    calendar: CalendarConfig | None = None,
    now: datetime | None = None,
    cache: BucketCache | None = None,
    data_version: Any = None,
) -> list[dict[str, Any]]:
    """Chart points for the cumulative running-distance chart."""
    buckets = running_distance_buckets(
        sessions,
        insight_range,
        calendar=_resolve_calendar(calendar, preferences),
        now=now,
        cache=cache,
        data_version=data_version,
    )
    return [
        {
            "start": bucket.start.isoformat(),
            "miles": round(bucket.sum, 2),
            "cumulative_miles": round(bucket.cumulative_sum, 2),
        }
        for bucket in buckets
    ]
