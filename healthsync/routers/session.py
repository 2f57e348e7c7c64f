"""Login / logout against the remote service and local health access."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import Field

from healthsync.dependencies import AppServices
from healthsync.metrics.base import MetricKind
from healthsync.metrics.sync.errors import AuthError, AuthTransportFailure
from healthsync.models.base import HealthSyncBase

router = APIRouter(prefix="/session", tags=["session"])


class LoginRequest(HealthSyncBase):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SessionStatus(HealthSyncBase):
    authenticated: bool
    health_access_granted: bool


@router.get("", response_model=SessionStatus)
async def get_session(services: AppServices) -> Any:
    return _status(services)


@router.post("/login", response_model=SessionStatus)
async def login(body: LoginRequest, services: AppServices) -> Any:
    try:
        await services.auth.login(body.username, body.password)
    except AuthTransportFailure as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return _status(services)


@router.delete("", status_code=204)
async def logout(services: AppServices) -> None:
    services.auth.clear()


@router.post("/health-access", response_model=SessionStatus)
async def request_health_access(services: AppServices) -> Any:
    """Ask the local store for read access to every tracked metric."""
    granted = await services.store.request_authorization(k.type_id for k in MetricKind)
    services.state.health_access_granted = granted
    return _status(services)


def _status(services: AppServices) -> SessionStatus:
    return SessionStatus(
        authenticated=services.auth.is_authenticated,
        health_access_granted=services.state.health_access_granted,
    )
