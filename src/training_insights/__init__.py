"""Training insights: calendar-aligned aggregates and weekly load for workout logs."""

from .alignment import CalendarConfig
from .models import LoggedExercise, LoggedSet, RunEntry, UserPreferences, WorkoutSession
from .temporal_aggregation import Bucket, BucketCache, Granularity, InsightRange, aggregate
from .training_load import TrainingLoadCalculator, WeeklyTrainingLoad

__all__ = [
    "Bucket",
    "BucketCache",
    "CalendarConfig",
    "Granularity",
    "InsightRange",
    "LoggedExercise",
    "LoggedSet",
    "RunEntry",
    "TrainingLoadCalculator",
    "UserPreferences",
    "WeeklyTrainingLoad",
    "WorkoutSession",
    "aggregate",
]
