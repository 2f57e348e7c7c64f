"""Exercise catalog and workout submission, proxied to the remote service."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from healthsync.dependencies import AppServices
from healthsync.metrics.sync.errors import SyncError, Unauthenticated
from healthsync.models.workouts import Exercise, WorkoutData

router = APIRouter(tags=["workouts"])


@router.get("/exercises", response_model=list[Exercise], response_model_by_alias=True)
async def list_exercises(services: AppServices) -> Any:
    try:
        return await services.remote_api.fetch_exercises()
    except SyncError as exc:
        raise _http_error(exc) from exc


@router.post("/workouts", status_code=201)
async def create_workout(body: WorkoutData, services: AppServices) -> dict:
    try:
        await services.remote_api.save_workout(body)
    except SyncError as exc:
        raise _http_error(exc) from exc
    return {"saved": True}


def _http_error(exc: SyncError) -> HTTPException:
    if isinstance(exc, Unauthenticated):
        return HTTPException(status_code=401, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))
