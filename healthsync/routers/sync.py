"""Trigger endpoints for single-day sync and range backfill."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from healthsync.dependencies import AppServices
from healthsync.models.records import (
    BackfillReportRead,
    BackfillRequest,
    SyncOutcomeRead,
    SyncRequest,
)

router = APIRouter(prefix="/sync", tags=["sync"])
logger = logging.getLogger("healthsync.routers.sync")


@router.post("", response_model=SyncOutcomeRead)
async def sync_day(services: AppServices, body: SyncRequest | None = None) -> Any:
    """Aggregate and send one day (today by default).

    The outcome is returned as-is; a failed send is reported in the body,
    not as an HTTP error, except when no credential is held.
    """
    if not services.auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Not logged in")
    day = body.day if body and body.day else services.today()
    outcome = await services.orchestrator.sync_day(day)
    return SyncOutcomeRead.from_outcome(outcome)


@router.post("/backfill", response_model=BackfillReportRead)
async def backfill(body: BackfillRequest, services: AppServices) -> Any:
    """Sync every day in ``[start_date, end_date]``; failed days do not stop the run."""
    if not services.auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Not logged in")
    if not services.orchestrator.enabled:
        raise HTTPException(status_code=403, detail="Backfill is disabled")
    try:
        report = await services.orchestrator.backfill(body.start_date, body.end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Backfill request %s..%s: %s", body.start_date, body.end_date, report.summary())
    return BackfillReportRead.from_report(report)
