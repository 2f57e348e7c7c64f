"""Range backfill orchestrator for healthsync.

Walks a closed range of local calendar days strictly in order.  For each
day it aggregates the record, sends it, records one ``SyncOutcome`` and
moves on, whether or not the day succeeded.  A failed day never stops the
run.

Usage::

    orchestrator = BackfillOrchestrator(aggregator, client, tz)
    report = await orchestrator.backfill(date(2026, 2, 1), date(2026, 2, 23))
    logger.info(report.summary())   # "22 of 23 days synced"

    async for outcome in orchestrator.iter_outcomes(start, end):
        logger.info("%s → %s", outcome.day, outcome.success)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import AsyncIterator, Awaitable, Callable

from healthsync.metrics.aggregator import DayAggregator
from healthsync.metrics.base import DailyRecord
from healthsync.metrics.config_loader import SyncConfig, get_sync_config
from healthsync.metrics.sync.client import SyncClient
from healthsync.metrics.sync.errors import AggregationError, SyncError

logger = logging.getLogger("healthsync.metrics.sync.backfill")

DayLike = date | datetime


@dataclass
class SyncOutcome:
    """Result of processing one day.

    Attributes:
        day:     The local calendar day.
        success: True if the record was accepted by the server.
        error:   The failure, if any.
        record:  The aggregated record, if aggregation succeeded.
    """

    day: date
    success: bool
    error: SyncError | AggregationError | None = None
    record: DailyRecord | None = None


@dataclass
class BackfillReport:
    """Ordered outcomes of one backfill run.

    Attributes:
        start_day: First day of the range (inclusive).
        end_day:   Last day of the range (inclusive).
        outcomes:  One SyncOutcome per processed day, in day order.
    """

    start_day: date
    end_day: date
    outcomes: list[SyncOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(o.success for o in self.outcomes)

    @property
    def synced_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed_days(self) -> list[date]:
        return [o.day for o in self.outcomes if not o.success]

    @property
    def last_completed_day(self) -> date | None:
        """Last day with a recorded outcome; resume from the day after."""
        return self.outcomes[-1].day if self.outcomes else None

    def summary(self) -> str:
        return f"{self.synced_count} of {len(self.outcomes)} days synced"


class BackfillOrchestrator:
    """Sequential, fail-forward sync over a range of days.

    Args:
        aggregator: Builds the record for one day.
        client:     Sends one record.
        tz:         Time zone used to truncate datetimes to calendar days.
        config:     Engine config; defaults to the global singleton.
        on_synced:  Optional async callback invoked with each accepted record.
    """

    def __init__(
        self,
        aggregator: DayAggregator,
        client: SyncClient,
        tz: tzinfo,
        config: SyncConfig | None = None,
        on_synced: Callable[[DailyRecord], Awaitable[None]] | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._client = client
        self._tz = tz
        self._config = config or get_sync_config()
        self._on_synced = on_synced

    @property
    def enabled(self) -> bool:
        return self._config.backfill.enabled

    async def backfill(
        self,
        start_day: DayLike,
        end_day: DayLike,
        report: BackfillReport | None = None,
    ) -> BackfillReport:
        """Sync every day in ``[start_day, end_day]`` and report.

        Pass a caller-owned ``report`` to keep the outcomes recorded so far
        when the call is cancelled or times out part way through the range.

        Raises:
            ValueError: If the range is reversed or longer than
                        ``backfill.max_days``.
        """
        start, end = self._validate_range(start_day, end_day)
        if report is None:
            report = BackfillReport(start_day=start, end_day=end)
        async for outcome in self._run(start, end):
            report.outcomes.append(outcome)

        log = logger.info if report.success else logger.warning
        log("Backfill %s..%s: %s", start, end, report.summary())
        return report

    async def iter_outcomes(
        self, start_day: DayLike, end_day: DayLike
    ) -> AsyncIterator[SyncOutcome]:
        """Yield each day's outcome as soon as that day completes."""
        start, end = self._validate_range(start_day, end_day)
        async for outcome in self._run(start, end):
            yield outcome

    async def sync_day(self, day: DayLike) -> SyncOutcome:
        """Sync a single day; ``backfill(day, day)`` reduced to its outcome."""
        report = await self.backfill(day, day)
        return report.outcomes[0]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def to_day(self, value: DayLike) -> date:
        """Truncate a datetime to its local calendar day."""
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self._tz)
            return value.date()
        return value

    def _validate_range(self, start_day: DayLike, end_day: DayLike) -> tuple[date, date]:
        start, end = self.to_day(start_day), self.to_day(end_day)
        if start > end:
            raise ValueError(f"Backfill start {start} is after end {end}")
        span = (end - start).days + 1
        max_days = self._config.backfill.max_days
        if span > max_days:
            raise ValueError(
                f"Backfill range of {span} days exceeds the limit of {max_days}"
            )
        return start, end

    async def _run(self, start: date, end: date) -> AsyncIterator[SyncOutcome]:
        rate_limit_s = self._config.backfill.rate_limit_ms / 1000.0
        total_days = (end - start).days + 1
        current = start

        while current <= end:
            outcome = await self._process(current)
            processed = (current - start).days + 1
            logger.debug(
                "Backfill %s: %s (%d/%d)",
                current, "ok" if outcome.success else outcome.error, processed, total_days,
            )
            yield outcome

            current += timedelta(days=1)
            if rate_limit_s and current <= end:
                await asyncio.sleep(rate_limit_s)

    async def _process(self, day: date) -> SyncOutcome:
        try:
            record = await self._aggregator.aggregate(day)
        except AggregationError as exc:
            logger.warning("Backfill could not aggregate %s: %s", day, exc)
            return SyncOutcome(day=day, success=False, error=exc)

        try:
            await self._client.send(record)
        except SyncError as exc:
            logger.warning("Backfill sync failed for %s: %s", day, exc)
            return SyncOutcome(day=day, success=False, error=exc, record=record)

        if self._on_synced:
            try:
                await self._on_synced(record)
            except Exception as cb_exc:
                logger.warning("Backfill callback error for %s: %s", day, cb_exc)

        return SyncOutcome(day=day, success=True, record=record)
