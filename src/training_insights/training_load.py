"""Weekly training load (lifting + running) and week-over-week change."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from .alignment import CalendarConfig, Granularity, as_aware, start_of_week, step
from .models import WorkoutSession


@dataclass(frozen=True)
class WeeklyTrainingLoad:
    week_start: datetime
    week_end: datetime
    session_count: int
    lifting_load: float
    running_load: float

    @property
    def total_load(self) -> float:
        return self.lifting_load + self.running_load

    def as_dict(self) -> dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "session_count": self.session_count,
            "lifting_load": round(self.lifting_load, 2),
            "running_load": round(self.running_load, 2),
            "total_load": round(self.total_load, 2),
        }


class TrainingLoadCalculator:
    """Computes load for calendar weeks of a fixed session snapshot.

    ``week_starts_on_monday`` overrides the calendar's convention when given.
    """

    def __init__(
        self,
        sessions: Iterable[WorkoutSession],
        calendar: CalendarConfig | None = None,
        week_starts_on_monday: bool | None = None,
    ) -> None:
        self._calendar = (calendar or CalendarConfig()).with_week_start(week_starts_on_monday)
        self._sessions: tuple[WorkoutSession, ...] = tuple(sessions)

    @property
    def calendar(self) -> CalendarConfig:
        return self._calendar

    @property
    def sessions(self) -> tuple[WorkoutSession, ...]:
        return self._sessions

    def start_of_week(self, instant: datetime) -> datetime:
        return start_of_week(instant, self._calendar)

    def end_of_week(self, instant: datetime) -> datetime:
        """Exclusive end: the start of the following week."""
        return step(self.start_of_week(instant), Granularity.DAY, 7, self._calendar)

    def sessions_in_week_containing(self, instant: datetime) -> list[WorkoutSession]:
        week_start = self.start_of_week(instant)
        week_end = self.end_of_week(instant)
        return [
            session
            for session in self._sessions
            if week_start <= as_aware(session.completed_at) < week_end
        ]

    def weekly_load(self, reference: datetime) -> WeeklyTrainingLoad:
        week_sessions = self.sessions_in_week_containing(reference)
        return WeeklyTrainingLoad(
            week_start=self.start_of_week(reference),
            week_end=self.end_of_week(reference),
            session_count=len(week_sessions),
            lifting_load=sum((s.lifting_load for s in week_sessions), 0.0),
            running_load=sum((s.running_load for s in week_sessions), 0.0),
        )

    def week_over_week_delta_percent(self, this_week: float, last_week: float) -> float | None:
        """Percent change from last week, or None when there is nothing to compare.

        The denominator is floored at 1 so a zero-load previous week still
        yields a finite change.
        """
        if not self._sessions:
            return None
        if this_week == 0 and last_week == 0:
            return None
        denominator = max(last_week, 1.0)
        return (this_week - last_week) / denominator * 100

