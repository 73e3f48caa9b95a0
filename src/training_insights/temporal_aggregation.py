"""Calendar-aligned bucketing of dated values over a trailing window.

A window is ``bucket_count`` contiguous buckets of one granularity, ending with
the bucket that contains "now". Every bucket is emitted even when empty, and
each carries its own sum plus the running cumulative sum.

Recomputed on demand; ``BucketCache`` adds explicit memoization for callers
that re-render often.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from .alignment import CalendarConfig, Granularity, align, step
from .models import WorkoutSession

logger = logging.getLogger(__name__)

__all__ = [
    "Bucket",
    "BucketCache",
    "DAYS",
    "Granularity",
    "InsightRange",
    "MONTHS",
    "RANGES",
    "WEEKS",
    "YEARS",
    "aggregate",
    "bucket_starts",
    "running_distance_buckets",
]


@dataclass(frozen=True)
class InsightRange:
    """A granularity paired with the number of trailing buckets to show."""

    granularity: Granularity
    bucket_count: int

    def __post_init__(self) -> None:
        if self.bucket_count < 1:
            raise ValueError(f"bucket_count must be >= 1, got {self.bucket_count}")

    @classmethod
    def named(cls, name: str) -> "InsightRange":
        key = name.strip().lower()
        if key not in RANGES:
            allowed = ", ".join(RANGES)
            raise ValueError(f"Unknown range {name!r}; expected one of: {allowed}")
        return RANGES[key]


DAYS = InsightRange(Granularity.DAY, 30)
WEEKS = InsightRange(Granularity.WEEK, 12)
MONTHS = InsightRange(Granularity.MONTH, 12)
YEARS = InsightRange(Granularity.YEAR, 5)

RANGES: dict[str, InsightRange] = {
    "days": DAYS,
    "weeks": WEEKS,
    "months": MONTHS,
    "years": YEARS,
}


@dataclass(frozen=True)
class Bucket:
    start: datetime
    sum: float
    cumulative_sum: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "sum": round(self.sum, 4),
            "cumulative_sum": round(self.cumulative_sum, 4),
        }


def _resolve_calendar(
    calendar: CalendarConfig | None,
    week_starts_on_monday: bool | None,
) -> CalendarConfig:
    return (calendar or CalendarConfig()).with_week_start(week_starts_on_monday)


def _current_instant(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def current_period_start(
    insight_range: InsightRange,
    calendar: CalendarConfig,
    now: datetime | None = None,
) -> datetime:
    return align(_current_instant(now), insight_range.granularity, calendar)


def bucket_starts(
    insight_range: InsightRange,
    week_starts_on_monday: bool | None = None,
    *,
    calendar: CalendarConfig | None = None,
    now: datetime | None = None,
) -> list[datetime]:
    """Return the ordered bucket start timestamps of the trailing window."""
    config = _resolve_calendar(calendar, week_starts_on_monday)
    granularity = insight_range.granularity

    end = current_period_start(insight_range, config, now)
    begin = step(end, granularity, -(insight_range.bucket_count - 1), config)

    starts = [begin]
    while starts[-1] < end:
        nxt = step(starts[-1], granularity, 1, config)
        if nxt <= starts[-1]:
            # Degraded arithmetic stopped advancing; keep what we have.
            break
        starts.append(nxt)
    return starts


def aggregate(
    events: Iterable[tuple[datetime, float]],
    insight_range: InsightRange,
    week_starts_on_monday: bool | None = None,
    *,
    calendar: CalendarConfig | None = None,
    now: datetime | None = None,
) -> list[Bucket]:
    """Sum ``(timestamp, value)`` events into the trailing calendar window.

    Non-positive values are ignored. Events whose aligned bucket falls outside
    the window are dropped.
    """
    config = _resolve_calendar(calendar, week_starts_on_monday)
    granularity = insight_range.granularity
    starts = bucket_starts(insight_range, calendar=config, now=now)
    begin, end = starts[0], starts[-1]

    sums: dict[datetime, float] = dict.fromkeys(starts, 0.0)
    dropped = 0
    for timestamp, value in events:
        if value is None or value <= 0:
            continue
        bucket_start = align(timestamp, granularity, config)
        if bucket_start < begin or bucket_start > end or bucket_start not in sums:
            dropped += 1
            continue
        sums[bucket_start] += value

    if dropped:
        logger.debug(
            "Dropped %d event(s) outside the %s window",
            dropped,
            granularity.value,
            extra={"insights_dropped_events": dropped},
        )

    buckets: list[Bucket] = []
    running = 0.0
    for start in starts:
        running += sums[start]
        buckets.append(Bucket(start=start, sum=sums[start], cumulative_sum=running))
    return buckets


def running_distance_buckets(
    sessions: Iterable[WorkoutSession],
    insight_range: InsightRange,
    week_starts_on_monday: bool | None = None,
    *,
    calendar: CalendarConfig | None = None,
    now: datetime | None = None,
    cache: BucketCache | None = None,
    data_version: Any = None,
) -> list[Bucket]:
    """Aggregate run distance (miles) by session completion time.

    With a ``cache``, results are memoized under ``data_version``, which is
    then required.
    """
    if cache is not None and data_version is None:
        raise ValueError("data_version is required when a cache is given")
    events = (
        (session.completed_at, session.run.distance_miles)
        for session in sessions
        if session.run is not None
    )
    if cache is not None:
        return cache.get_or_compute(
            events,
            insight_range,
            week_starts_on_monday,
            data_version=data_version,
            calendar=calendar,
            now=now,
        )
    return aggregate(
        events,
        insight_range,
        week_starts_on_monday,
        calendar=calendar,
        now=now,
    )


class BucketCache:
    """Bounded memoization for ``aggregate``.

    Keyed by (range, week start, data version, timezone, current period start).
    Callers bump ``data_version`` whenever their event snapshot changes; a new
    current period (e.g. after midnight) misses naturally.
    """

    def __init__(self, max_entries: int = 32) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: OrderedDict[tuple, tuple[Bucket, ...]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def get_or_compute(
        self,
        events: Iterable[tuple[datetime, float]],
        insight_range: InsightRange,
        week_starts_on_monday: bool | None = None,
        *,
        data_version: Any,
        calendar: CalendarConfig | None = None,
        now: datetime | None = None,
    ) -> list[Bucket]:
        config = _resolve_calendar(calendar, week_starts_on_monday)
        now = _current_instant(now)
        key = (
            insight_range,
            config.week_starts_on_monday,
            data_version,
            config.timezone,
            current_period_start(insight_range, config, now),
        )

        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return list(cached)

        self.misses += 1
        buckets = aggregate(events, insight_range, calendar=config, now=now)
        self._entries[key] = tuple(buckets)
        if len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        return buckets
