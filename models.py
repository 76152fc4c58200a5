from __future__ import annotations
import datetime
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

KNOWN_WORKOUT_TYPES = (
    "Cardio",
    "Walking",
    "Strength",
    "Cycling",
    "Flexibility",
    "Volleyball",
    "Sports",
    "HIIT",
    "Yoga",
    "Golf",
)
UNKNOWN_TYPE = "Unknown"

_CANONICAL_TYPES = {t.lower(): t for t in KNOWN_WORKOUT_TYPES}


def split_tags(text: Optional[str]) -> list[str]:
    """Split a comma-joined tag string as stored in the database."""
    if not text:
        return []
    return [t.strip() for t in text.split(",") if t.strip()]


def join_tags(tags: Iterable[str]) -> str:
    return ",".join(tags)


def canonical_type(value: Optional[str], default: str = UNKNOWN_TYPE) -> str:
    """Return the known category label for ``value`` or ``default``."""
    if not value:
        return default
    return _CANONICAL_TYPES.get(value.strip().lower(), default)


class WorkoutRecord(BaseModel):
    """Read-only workout entry handed to the statistics engine."""

    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    date: Optional[datetime.datetime] = None
    duration_minutes: float = 0.0
    type: Optional[str] = None
    calories: float = 0.0
    heart_rate: float = 0.0
    notes: Optional[str] = None
    tags: tuple[str, ...] = ()

    @field_validator("duration_minutes", "calories", "heart_rate", mode="before")
    @classmethod
    def _non_negative(cls, value):
        if value is None:
            return 0.0
        return max(0.0, float(value))

    @field_validator("tags", mode="before")
    @classmethod
    def _ordered_tag_set(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = split_tags(value)
        seen: list[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in seen:
                seen.append(tag)
        return tuple(seen)

    @property
    def category(self) -> str:
        return canonical_type(self.type)


class ExerciseRecord(BaseModel):
    """Exercise of a structured strength plan day."""

    id: int
    name: str
    order_index: int = 0
    circuit_name: Optional[str] = None
    exercise_type: str = "sets_reps"
    day_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("circuit_name", mode="before")
    @classmethod
    def _blank_circuit(cls, value):
        if value is None or not str(value).strip():
            return None
        return value

    @property
    def is_sets_based(self) -> bool:
        return self.exercise_type == "sets_reps"

    @property
    def is_duration_based(self) -> bool:
        return self.exercise_type == "duration"


class WorkoutGroup(BaseModel):
    """A circuit with its members or a single standalone exercise."""

    circuit_name: Optional[str] = None
    members: list[ExerciseRecord]

    @property
    def is_circuit(self) -> bool:
        return self.circuit_name is not None

    @property
    def exercise_ids(self) -> list[int]:
        return [m.id for m in self.members]
