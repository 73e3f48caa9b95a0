"""Tests for weekly training load and week-over-week change."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from training_insights.alignment import CalendarConfig
from training_insights.models import LoggedExercise, LoggedSet, RunEntry, WorkoutSession
from training_insights.training_load import TrainingLoadCalculator

UTC = ZoneInfo("UTC")

# Wednesday
NOW = datetime(2026, 2, 11, 15, 0, tzinfo=timezone.utc)


def _session(completed_at: datetime, *, miles: float = 0.0, lifted: tuple[float, int] | None = None) -> WorkoutSession:
    exercises = []
    if lifted is not None:
        weight, reps = lifted
        exercises.append(
            LoggedExercise(name="Squat", sets=[LoggedSet(weight=weight, reps=reps, is_completed=True)])
        )
    run = RunEntry(distance_miles=miles) if miles else None
    return WorkoutSession(started_at=completed_at, completed_at=completed_at, exercises=exercises, run=run)


class TestWeekBoundaries:
    def test_sunday_start_by_default(self):
        calc = TrainingLoadCalculator([])
        assert calc.start_of_week(NOW) == datetime(2026, 2, 8, tzinfo=UTC)
        assert calc.end_of_week(NOW) == datetime(2026, 2, 15, tzinfo=UTC)

    def test_monday_override(self):
        calc = TrainingLoadCalculator([], week_starts_on_monday=True)
        assert calc.start_of_week(NOW) == datetime(2026, 2, 9, tzinfo=UTC)
        assert calc.end_of_week(NOW) == datetime(2026, 2, 16, tzinfo=UTC)

    def test_override_beats_calendar_setting(self):
        calc = TrainingLoadCalculator(
            [],
            calendar=CalendarConfig(week_starts_on_monday=True),
            week_starts_on_monday=False,
        )
        assert calc.calendar.week_starts_on_monday is False

    def test_week_is_half_open(self):
        start = datetime(2026, 2, 8, tzinfo=timezone.utc)
        end = datetime(2026, 2, 15, tzinfo=timezone.utc)
        calc = TrainingLoadCalculator([_session(start, miles=1.0), _session(end, miles=2.0)])
        in_week = calc.sessions_in_week_containing(NOW)
        assert [s.completed_at for s in in_week] == [start]


class TestWeeklyLoad:
    def test_sums_lifting_and_running(self):
        calc = TrainingLoadCalculator([
            _session(datetime(2026, 2, 10, 18, 0, tzinfo=timezone.utc), lifted=(100.0, 10)),
            _session(datetime(2026, 2, 9, 7, 0, tzinfo=timezone.utc), miles=3.0),
            _session(datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc), miles=10.0),
        ])
        load = calc.weekly_load(NOW)
        assert load.session_count == 2
        assert load.lifting_load == 1000.0
        assert load.running_load == 300.0
        assert load.total_load == 1300.0
        assert load.week_start == datetime(2026, 2, 8, tzinfo=UTC)

    def test_empty_week(self):
        load = TrainingLoadCalculator([]).weekly_load(NOW)
        assert load.session_count == 0
        assert load.total_load == 0.0

    def test_as_dict(self):
        load = TrainingLoadCalculator([_session(NOW, miles=1.234)]).weekly_load(NOW)
        assert load.as_dict() == {
            "week_start": "2026-02-08T00:00:00+00:00",
            "week_end": "2026-02-15T00:00:00+00:00",
            "session_count": 1,
            "lifting_load": 0.0,
            "running_load": 123.4,
            "total_load": 123.4,
        }


class TestWeekOverWeekDelta:
    def test_absent_without_sessions(self):
        assert TrainingLoadCalculator([]).week_over_week_delta_percent(100.0, 50.0) is None

    def test_absent_when_both_weeks_are_empty(self):
        calc = TrainingLoadCalculator([_session(NOW, miles=1.0)])
        assert calc.week_over_week_delta_percent(0.0, 0.0) is None

    def test_zero_when_equal(self):
        calc = TrainingLoadCalculator([_session(NOW, miles=1.0)])
        assert calc.week_over_week_delta_percent(400.0, 400.0) == 0.0

    def test_negative_when_lower(self):
        calc = TrainingLoadCalculator([_session(NOW, miles=1.0)])
        assert calc.week_over_week_delta_percent(50.0, 100.0) == -50.0

    def test_increase(self):
        calc = TrainingLoadCalculator([_session(NOW, miles=1.0)])
        assert calc.week_over_week_delta_percent(1300.0, 1000.0) == pytest.approx(30.0)

    def test_denominator_floor_of_one(self):
        calc = TrainingLoadCalculator([_session(NOW, miles=1.0)])
        assert calc.week_over_week_delta_percent(50.0, 0.0) == 5000.0
        assert calc.week_over_week_delta_percent(0.5, 0.25) == pytest.approx(25.0)
