"""Metric source adapter: one metric, one day, one value.

``MetricSource.fetch()`` reads a single ``MetricKind`` for a single local
calendar day from a ``HealthStore`` and reduces it to a ``MetricSample`` in
the kind's target unit.

Windows:
    cumulative kinds   [00:00 day, 00:00 day+1) local, strict start date
    sleep              [cutoff day-1, cutoff day) local, trailing 24h
    point-in-time      latest sample ending at or before 00:00 day+1, any age

Any store failure is logged and becomes a zero-valued sample carrying the
reason in ``error``, unless ``sources.strict`` is set in sync_config.yaml.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, tzinfo

from healthsync.metrics.base import HealthStore, MetricKind, MetricSample
from healthsync.metrics.config_loader import SyncConfig, get_sync_config
from healthsync.metrics.sync.errors import SourceUnavailable

logger = logging.getLogger("healthsync.metrics.sources")

# target unit -> {native unit -> multiplier}
_UNIT_FACTORS: dict[str, dict[str, float]] = {
    "count": {"count": 1.0},
    "kcal": {"kcal": 1.0, "Cal": 1.0, "cal": 0.001, "kJ": 1 / 4.184},
    "L": {"L": 1.0, "mL": 0.001, "dL": 0.1, "fl_oz_us": 0.0295735295625, "cup_us": 0.2365882365},
    "hr": {"hr": 1.0, "min": 1 / 60, "s": 1 / 3600},
    "kg": {"kg": 1.0, "g": 0.001, "lb": 0.45359237, "st": 6.35029318},
    # HealthKit stores percentages as fractions: 0.22 "%" means 22 %.
    "%": {"%": 100.0},
    "in": {"in": 1.0, "ft": 12.0, "cm": 1 / 2.54, "m": 100 / 2.54},
    "g": {"g": 1.0, "mg": 0.001, "mcg": 0.000001, "kg": 1000.0, "oz": 28.349523125},
}


def convert(value: float, unit: str, target: str) -> float:
    """Convert ``value`` from ``unit`` to ``target``.

    Raises:
        SourceUnavailable: If the unit pair is not convertible.
    """
    try:
        return value * _UNIT_FACTORS[target][unit]
    except KeyError:
        raise SourceUnavailable(f"Cannot convert unit {unit!r} to {target!r}") from None


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of a local calendar day as aware datetimes."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def sleep_bounds(day: date, tz: tzinfo, cutoff_hour: int) -> tuple[datetime, datetime]:
    """Return the 24h sleep window ending at ``cutoff_hour`` on ``day``."""
    cutoff = time(hour=cutoff_hour)
    start = datetime.combine(day - timedelta(days=1), cutoff, tzinfo=tz)
    end = datetime.combine(day, cutoff, tzinfo=tz)
    return start, end


class MetricSource:
    """Uniform, failure-absorbing reader for one metric over one day.

    Args:
        store:  The local health-data provider.
        tz:     Time zone that defines calendar days.
        config: Engine config; defaults to the global singleton.
    """

    def __init__(
        self,
        store: HealthStore,
        tz: tzinfo,
        config: SyncConfig | None = None,
    ) -> None:
        self._store = store
        self._tz = tz
        self._config = config or get_sync_config()

    @property
    def strict(self) -> bool:
        return self._config.sources.strict

    async def fetch(self, kind: MetricKind, day: date) -> MetricSample:
        """Fetch ``kind`` for ``day``.

        Returns:
            A MetricSample; 0.0 with ``error`` set if the read failed.

        Raises:
            SourceUnavailable: Only in strict mode.
        """
        try:
            if kind is MetricKind.SLEEP:
                return await self._fetch_sleep(day)
            if kind.is_point_in_time:
                return await self._fetch_latest(kind, day)
            return await self._fetch_cumulative(kind, day)
        except Exception as exc:
            if self.strict:
                if isinstance(exc, SourceUnavailable):
                    raise
                raise SourceUnavailable(f"{kind.name} read failed: {exc}") from exc
            logger.warning(
                "%s read failed on %s for %s, substituting 0.0: %s",
                self._store.DISPLAY_NAME, day, kind.name, exc,
            )
            return MetricSample.zero(kind, error=str(exc) or type(exc).__name__)

    async def _fetch_cumulative(self, kind: MetricKind, day: date) -> MetricSample:
        start, end = day_bounds(day, self._tz)
        samples = await self._store.query_samples(kind.type_id, start, end)
        total = sum(convert(s.value, s.unit, kind.unit) for s in samples)
        return MetricSample(kind=kind, value=float(total))

    async def _fetch_sleep(self, day: date) -> MetricSample:
        cfg = self._config.sleep
        start, end = sleep_bounds(day, self._tz, cfg.day_cutoff_hour)
        samples = await self._store.query_samples(MetricKind.SLEEP.type_id, start, end)
        asleep = set(cfg.asleep_values)
        seconds = sum(s.duration_seconds for s in samples if s.category in asleep)
        return MetricSample(kind=MetricKind.SLEEP, value=seconds / 3600.0)

    async def _fetch_latest(self, kind: MetricKind, day: date) -> MetricSample:
        _, end = day_bounds(day, self._tz)
        sample = await self._store.latest_sample(kind.type_id, until=end)
        if sample is None:
            return MetricSample.zero(kind)
        return MetricSample(
            kind=kind,
            value=convert(sample.value, sample.unit, kind.unit),
            sample_date=sample.end,
        )
