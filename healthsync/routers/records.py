"""Read-only view of the aggregated record for one day."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException

from healthsync.dependencies import AppServices
from healthsync.metrics.sync.errors import AggregationError
from healthsync.models.records import DailyRecordRead

router = APIRouter(prefix="/records", tags=["records"])


@router.get("/today", response_model=DailyRecordRead)
async def get_today(services: AppServices) -> Any:
    return await _aggregate(services, services.today())


@router.get("/{day}", response_model=DailyRecordRead)
async def get_day(day: date, services: AppServices) -> Any:
    return await _aggregate(services, day)


async def _aggregate(services: AppServices, day: date) -> DailyRecordRead:
    try:
        record = await services.aggregator.aggregate(day)
    except AggregationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return DailyRecordRead.from_record(record)
