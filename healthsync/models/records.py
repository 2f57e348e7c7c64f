"""Pydantic models for daily records: the persist wire payload and API views."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from pydantic import Field

from healthsync.models.base import HealthSyncBase, WireBase

if TYPE_CHECKING:
    from healthsync.metrics.base import DailyRecord
    from healthsync.metrics.sync.backfill import BackfillReport, SyncOutcome


# ---------- Wire payload (POST /health/persist) ----------

class DailyRecordPayload(WireBase):
    timestamp: datetime
    steps: float
    sleep: float
    activity: float
    water: float
    weight: float
    weight_date: datetime | None = Field(default=None, alias="weightDate")
    body_fat: float = Field(alias="bodyFat")
    body_fat_date: datetime | None = Field(default=None, alias="bodyFatDate")
    waist_circumference: float = Field(alias="waistCircumference")
    waist_date: datetime | None = Field(default=None, alias="waistDate")
    calories: float
    carbs: float
    fat: float
    protein: float

    @classmethod
    def from_record(cls, record: "DailyRecord") -> "DailyRecordPayload":
        return cls(
            timestamp=record.timestamp,
            steps=record.steps,
            sleep=record.sleep,
            activity=record.active_energy,
            water=record.water,
            weight=record.weight,
            weight_date=record.weight_date,
            body_fat=record.body_fat,
            body_fat_date=record.body_fat_date,
            waist_circumference=record.waist_circumference,
            waist_date=record.waist_date,
            calories=record.calories,
            carbs=record.carbs,
            fat=record.fat,
            protein=record.protein,
        )

    def to_wire(self) -> str:
        """JSON body with camelCase keys; absent companion dates are omitted."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


# ---------- API views ----------

class DailyRecordRead(HealthSyncBase):
    day: date
    timestamp: datetime
    steps: float
    active_energy: float
    water: float
    sleep: float
    weight: float
    weight_date: datetime | None = None
    body_fat: float
    body_fat_date: datetime | None = None
    waist_circumference: float
    waist_date: datetime | None = None
    calories: float
    carbs: float
    fat: float
    protein: float
    unavailable: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: "DailyRecord") -> "DailyRecordRead":
        return cls.model_validate(record).model_copy(
            update={"unavailable": {k.name.lower(): v for k, v in record.errors.items()}}
        )


class SyncRequest(HealthSyncBase):
    day: date | None = None


class BackfillRequest(HealthSyncBase):
    start_date: date
    end_date: date


class SyncOutcomeRead(HealthSyncBase):
    day: date
    success: bool
    error: str | None = None
    error_kind: str | None = None
    status_code: int | None = None
    record: DailyRecordRead | None = None

    @classmethod
    def from_outcome(cls, outcome: "SyncOutcome") -> "SyncOutcomeRead":
        err = outcome.error
        return cls(
            day=outcome.day,
            success=outcome.success,
            error=str(err) if err else None,
            error_kind=getattr(err, "kind", None) if err else None,
            status_code=getattr(err, "status_code", None),
            record=DailyRecordRead.from_record(outcome.record) if outcome.record else None,
        )


class BackfillReportRead(HealthSyncBase):
    start_date: date
    end_date: date
    success: bool
    synced: int
    total: int
    summary: str
    outcomes: list[SyncOutcomeRead]

    @classmethod
    def from_report(cls, report: "BackfillReport") -> "BackfillReportRead":
        return cls(
            start_date=report.start_day,
            end_date=report.end_day,
            success=report.success,
            synced=report.synced_count,
            total=len(report.outcomes),
            summary=report.summary(),
            outcomes=[SyncOutcomeRead.from_outcome(o) for o in report.outcomes],
        )
