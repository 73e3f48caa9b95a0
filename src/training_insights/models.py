"""Workout session records consumed by the insights computations.

Records mirror the training app's JSON export (camelCase keys); snake_case
field names are accepted as well. All models are frozen: sessions are owned by
the caller's store and never mutated here.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

KM_TO_MILES = 0.621371
RUNNING_LOAD_PER_MILE = 100.0


class _ExportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class RunMode(str, Enum):
    MANUAL = "Manual"
    GPS = "GPS"


class DistanceSource(str, Enum):
    MANUAL = "manual"
    GPS = "gps"
    ESTIMATED = "estimated"


def _first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class RunEntry(_ExportModel):
    mode: RunMode = RunMode.MANUAL
    distance_miles: float = Field(default=0.0, ge=0)
    duration_seconds: int = Field(default=0, ge=0)
    notes: str = ""
    avg_pace_sec_per_mile: int | None = None
    elevation_gain_feet: float | None = None
    distance_source: DistanceSource | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_export_fields(cls, data: Any) -> Any:
        """Resolve distance units, clamp negatives, derive pace and distance source."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        miles = _first_present(data, "distanceMiles", "distance_miles")
        if miles is None:
            km = _first_present(data, "distanceKm", "distance_km")
            miles = float(km) * KM_TO_MILES if km is not None else 0.0
        miles = max(0.0, float(miles))
        data.pop("distanceMiles", None)
        data["distance_miles"] = miles

        duration = _first_present(data, "durationSeconds", "duration_seconds") or 0
        duration = max(0, int(duration))
        data.pop("durationSeconds", None)
        data["duration_seconds"] = duration

        pace = _first_present(data, "avgPaceSecPerMile", "avg_pace_sec_per_mile")
        if pace is None and miles > 0 and duration > 0:
            data.pop("avgPaceSecPerMile", None)
            data["avg_pace_sec_per_mile"] = int(round(duration / miles))

        if _first_present(data, "distanceSource", "distance_source") is None:
            mode = _first_present(data, "mode")
            gps = mode in (RunMode.GPS, RunMode.GPS.value)
            data["distance_source"] = DistanceSource.GPS if gps else DistanceSource.MANUAL
        return data


class LoggedSet(_ExportModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    reps: int
    weight: float
    is_completed: bool = False

    @property
    def volume(self) -> float:
        """Completed volume (weight x reps), zero for incomplete sets."""
        if not self.is_completed:
            return 0.0
        return max(0.0, self.weight) * max(0, self.reps)


class LoggedExercise(_ExportModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    notes: str = ""
    sets: list[LoggedSet] = Field(default_factory=list)


class UserPreferences(_ExportModel):
    week_starts_on_monday: bool = False


class WorkoutSession(_ExportModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = "Workout"
    started_at: datetime
    completed_at: datetime
    notes: str = ""
    elapsed_seconds: int = 0
    exercises: list[LoggedExercise] = Field(default_factory=list)
    run: RunEntry | None = None

    @model_validator(mode="before")
    @classmethod
    def default_completed_at(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if _first_present(data, "completedAt", "completed_at") is None:
            data = dict(data)
            data.pop("completedAt", None)
            data["completed_at"] = _first_present(data, "startedAt", "started_at")
        return data

    @field_validator("elapsed_seconds")
    @classmethod
    def clamp_elapsed(cls, value: int) -> int:
        return max(0, value)

    @property
    def lifting_load(self) -> float:
        return sum((s.volume for exercise in self.exercises for s in exercise.sets), 0.0)

    @property
    def running_load(self) -> float:
        miles = self.run.distance_miles if self.run is not None else 0.0
        return max(0.0, miles) * RUNNING_LOAD_PER_MILE

    @property
    def total_load(self) -> float:
        return self.lifting_load + self.running_load

    @property
    def distance_miles(self) -> float:
        return self.run.distance_miles if self.run is not None else 0.0


def parse_sessions(records: Iterable[dict[str, Any]]) -> list[WorkoutSession]:
    """Validate raw session dicts. Raises pydantic.ValidationError on bad records."""
    return [WorkoutSession.model_validate(record) for record in records]
