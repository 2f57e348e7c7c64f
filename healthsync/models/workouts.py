"""Pydantic models for the remote exercise catalog and workout submission."""

from __future__ import annotations

from pydantic import Field

from healthsync.models.base import WireBase


# ---------- Exercise catalog (GET /exercises) ----------

class ExerciseSupport(WireBase):
    sets: bool = False
    duration: bool = False
    distance: bool = False
    weight: bool = False
    temperature: bool = False


class Exercise(WireBase):
    id: str
    name: str
    category: str
    tags: list[str] = Field(default_factory=list)
    supports: ExerciseSupport = Field(default_factory=ExerciseSupport)
    default_met: float | None = Field(default=None, alias="defaultMET")
    apple_health_id: str | None = Field(default=None, alias="appleHealthId")


# ---------- Workout submission (POST /workouts) ----------

class WorkoutData(WireBase):
    exercise_id: str = Field(alias="exerciseId", min_length=1)
    date: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    sets: int | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, ge=0)
    distance: float | None = Field(default=None, ge=0)
    temperature: float | None = None
    notes: str | None = None

    def to_wire(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
