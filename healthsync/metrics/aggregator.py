"""Day aggregator: fan out one fetch per metric, join, build one record.

All eleven ``MetricSource.fetch()`` calls for a day run concurrently.  Each
task fills the slot for its own kind; the record is assembled by kind only
after every task has finished, so completion order never matters.  In strict
mode the first failed fetch cancels the rest, so no fetch outlives the call.

Usage::

    aggregator = DayAggregator(MetricSource(store, tz), tz)
    record = await aggregator.aggregate(date(2026, 2, 23))
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable

from healthsync.metrics.base import DailyRecord, MetricKind, MetricSample
from healthsync.metrics.sources import MetricSource, day_bounds
from healthsync.metrics.sync.errors import AggregationError, SourceUnavailable

logger = logging.getLogger("healthsync.metrics.aggregator")


class DayAggregator:
    """Scatter/gather over every MetricKind for a single day.

    Args:
        source: Metric source adapter shared by all fetches.
        tz:     Time zone that defines calendar days.
        clock:  Returns the current aware datetime; injectable for tests.
        kinds:  Kinds to fetch.  Defaults to all of MetricKind.
    """

    def __init__(
        self,
        source: MetricSource,
        tz: tzinfo,
        clock: Callable[[], datetime] | None = None,
        kinds: list[MetricKind] | None = None,
    ) -> None:
        self._source = source
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(tz))
        self._kinds = list(kinds or MetricKind)

    async def aggregate(self, day: date) -> DailyRecord:
        """Fetch every metric for ``day`` and return the unified record.

        Raises:
            AggregationError: Only when the source runs in strict mode and
                              a metric could not be read.
        """
        slots: dict[MetricKind, MetricSample] = {}

        async def _fill(kind: MetricKind) -> None:
            slots[kind] = await self._source.fetch(kind, day)

        failure: SourceUnavailable | None = None
        try:
            # a failing fetch cancels its siblings before the group exits
            async with asyncio.TaskGroup() as group:
                for kind in self._kinds:
                    group.create_task(_fill(kind))
        except* SourceUnavailable as eg:
            failure = eg.exceptions[0]
        if failure is not None:
            raise AggregationError(f"Could not aggregate {day}: {failure}") from failure

        record = DailyRecord.from_samples(day, self._snapshot_time(day), slots)
        if record.errors:
            logger.debug(
                "Aggregated %s with %d/%d metrics zero-filled: %s",
                day, len(record.errors), len(self._kinds),
                ", ".join(k.name for k in record.missing_kinds),
            )
        else:
            logger.debug("Aggregated %s (%d metrics)", day, len(self._kinds))
        return record

    def _snapshot_time(self, day: date) -> datetime:
        """Now for today; the last second of ``day`` for past days."""
        now = self._clock()
        _, end = day_bounds(day, self._tz)
        return min(now, end - timedelta(seconds=1))
