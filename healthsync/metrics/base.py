"""Canonical data models for the healthsync metric engine.

Every health store returns raw ``HealthSample`` objects; the metric source
adapter reduces them to one ``MetricSample`` per ``MetricKind``, and the day
aggregator folds the eleven samples into a single ``DailyRecord``.  These
types are the single source of truth consumed by the sync client, the
backfill orchestrator and the API layer.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable

logger = logging.getLogger("healthsync.metrics")


# ---------------------------------------------------------------------------
# Metric kinds
# ---------------------------------------------------------------------------


class Aggregation(str, Enum):
    """How a metric is reduced over a day."""

    CUMULATIVE = "cumulative"  # same-day sum
    LATEST = "latest"          # most recent reading, any day


class MetricKind(Enum):
    """The fixed set of tracked quantities.

    Each member carries the HealthKit type identifier it is read from, the
    unit it is reported in, how it is aggregated, and the wire field name
    used by the remote persistence endpoint.
    """

    STEPS = ("HKQuantityTypeIdentifierStepCount", "count", Aggregation.CUMULATIVE, "steps")
    ACTIVE_ENERGY = ("HKQuantityTypeIdentifierActiveEnergyBurned", "kcal", Aggregation.CUMULATIVE, "activity")
    WATER = ("HKQuantityTypeIdentifierDietaryWater", "L", Aggregation.CUMULATIVE, "water")
    SLEEP = ("HKCategoryTypeIdentifierSleepAnalysis", "hr", Aggregation.CUMULATIVE, "sleep")
    BODY_MASS = ("HKQuantityTypeIdentifierBodyMass", "kg", Aggregation.LATEST, "weight")
    BODY_FAT = ("HKQuantityTypeIdentifierBodyFatPercentage", "%", Aggregation.LATEST, "bodyFat")
    WAIST = ("HKQuantityTypeIdentifierWaistCircumference", "in", Aggregation.LATEST, "waistCircumference")
    CALORIES = ("HKQuantityTypeIdentifierDietaryEnergyConsumed", "kcal", Aggregation.CUMULATIVE, "calories")
    CARBS = ("HKQuantityTypeIdentifierDietaryCarbohydrates", "g", Aggregation.CUMULATIVE, "carbs")
    FAT = ("HKQuantityTypeIdentifierDietaryFatTotal", "g", Aggregation.CUMULATIVE, "fat")
    PROTEIN = ("HKQuantityTypeIdentifierDietaryProtein", "g", Aggregation.CUMULATIVE, "protein")

    def __init__(
        self, type_id: str, unit: str, aggregation: Aggregation, wire_name: str
    ) -> None:
        self.type_id = type_id
        self.unit = unit
        self.aggregation = aggregation
        self.wire_name = wire_name

    @property
    def is_point_in_time(self) -> bool:
        return self.aggregation is Aggregation.LATEST


# Record attribute for each kind, and the companion date attribute for
# point-in-time kinds.
RECORD_FIELDS: dict[MetricKind, str] = {
    MetricKind.STEPS: "steps",
    MetricKind.ACTIVE_ENERGY: "active_energy",
    MetricKind.WATER: "water",
    MetricKind.SLEEP: "sleep",
    MetricKind.BODY_MASS: "weight",
    MetricKind.BODY_FAT: "body_fat",
    MetricKind.WAIST: "waist_circumference",
    MetricKind.CALORIES: "calories",
    MetricKind.CARBS: "carbs",
    MetricKind.FAT: "fat",
    MetricKind.PROTEIN: "protein",
}

DATE_FIELDS: dict[MetricKind, str] = {
    MetricKind.BODY_MASS: "weight_date",
    MetricKind.BODY_FAT: "body_fat_date",
    MetricKind.WAIST: "waist_date",
}


# ---------------------------------------------------------------------------
# Raw provider samples
# ---------------------------------------------------------------------------


@dataclass
class HealthSample:
    """One raw sample as stored by the local health-data provider.

    Attributes:
        type_id:     HealthKit type identifier.
        value:       Quantity in ``unit``; ignored for category samples.
        unit:        Native unit string (e.g. 'mL', 'lb', 'kcal').
        start:       Timezone-aware start of the sample.
        end:         Timezone-aware end of the sample.
        category:    Category value for category samples (sleep stages).
        source_name: Device or app that wrote the sample.
    """

    type_id: str
    value: float
    unit: str
    start: datetime
    end: datetime
    category: str | None = None
    source_name: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


class HealthStore(ABC):
    """Abstract local health-data provider.

    Implementations may raise ``SourceUnavailable`` (or any other exception)
    when a type is unsupported or access has been denied; an empty result
    means "no data" and is not an error.
    """

    #: Human-readable name for logging.
    DISPLAY_NAME: str = "Unknown Store"

    @abstractmethod
    async def query_samples(
        self, type_id: str, start: datetime, end: datetime
    ) -> list[HealthSample]:
        """Return every sample of ``type_id`` whose start lies in ``[start, end)``."""

    @abstractmethod
    async def latest_sample(
        self, type_id: str, until: datetime | None = None
    ) -> HealthSample | None:
        """Return the sample of ``type_id`` with the latest end time.

        Args:
            type_id: HealthKit type identifier.
            until:   Only consider samples ending at or before this instant.

        Returns:
            The most recent sample, or None if the store holds none.
        """

    async def request_authorization(self, type_ids: Iterable[str]) -> bool:
        """Ask the provider for read access to ``type_ids``.

        Stores without an authorization model grant everything.
        """
        return True


# ---------------------------------------------------------------------------
# Reduced samples and the daily record
# ---------------------------------------------------------------------------


@dataclass
class MetricSample:
    """One metric reduced for one day.

    Attributes:
        kind:        Which quantity this is.
        value:       Value in the kind's target unit; 0.0 when absent.
        sample_date: When the reading was taken (point-in-time kinds only).
        error:       Why a zero was substituted, if the source failed.
    """

    kind: MetricKind
    value: float = 0.0
    sample_date: datetime | None = None
    error: str | None = None

    @classmethod
    def zero(cls, kind: MetricKind, error: str | None = None) -> "MetricSample":
        return cls(kind=kind, value=0.0, sample_date=None, error=error)


@dataclass(frozen=True)
class DailyRecord:
    """Immutable snapshot of every metric for one calendar day.

    Numeric fields are always populated; only the companion dates of the
    point-in-time kinds may be None.

    Attributes:
        day:                 Local calendar day the record describes.
        timestamp:           Instant the snapshot reflects.
        steps:               Step count.
        active_energy:       Active energy burned (kcal).
        water:               Dietary water (L).
        sleep:               Time asleep (hours).
        weight:              Most recent body mass (kg).
        body_fat:            Most recent body-fat percentage.
        waist_circumference: Most recent waist circumference (in).
        calories:            Dietary energy consumed (kcal).
        carbs:               Dietary carbohydrates (g).
        fat:                 Dietary fat (g).
        protein:             Dietary protein (g).
        weight_date:         When ``weight`` was recorded.
        body_fat_date:       When ``body_fat`` was recorded.
        waist_date:          When ``waist_circumference`` was recorded.
        errors:              kind -> reason, for kinds that fell back to zero.
    """

    day: date
    timestamp: datetime
    steps: float = 0.0
    active_energy: float = 0.0
    water: float = 0.0
    sleep: float = 0.0
    weight: float = 0.0
    body_fat: float = 0.0
    waist_circumference: float = 0.0
    calories: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    protein: float = 0.0
    weight_date: datetime | None = None
    body_fat_date: datetime | None = None
    waist_date: datetime | None = None
    errors: dict[MetricKind, str] = field(default_factory=dict, compare=False)

    @classmethod
    def from_samples(
        cls,
        day: date,
        timestamp: datetime,
        samples: dict[MetricKind, MetricSample],
    ) -> "DailyRecord":
        """Build a record by kind; kinds missing from ``samples`` stay 0.0."""
        values: dict[str, object] = {}
        errors: dict[MetricKind, str] = {}
        for kind, attr in RECORD_FIELDS.items():
            sample = samples.get(kind)
            if sample is None:
                continue
            values[attr] = float(sample.value)
            if kind in DATE_FIELDS:
                values[DATE_FIELDS[kind]] = sample.sample_date
            if sample.error:
                errors[kind] = sample.error
        return cls(day=day, timestamp=timestamp, errors=errors, **values)

    def value(self, kind: MetricKind) -> float:
        return getattr(self, RECORD_FIELDS[kind])

    def sample_date(self, kind: MetricKind) -> datetime | None:
        attr = DATE_FIELDS.get(kind)
        return getattr(self, attr) if attr else None

    @property
    def missing_kinds(self) -> list[MetricKind]:
        return [k for k in MetricKind if k in self.errors]
