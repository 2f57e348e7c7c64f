"""Service container and shared FastAPI dependencies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Annotated

import httpx
from fastapi import Depends, Request

from healthsync.config import Settings, get_settings
from healthsync.metrics.aggregator import DayAggregator
from healthsync.metrics.base import DailyRecord, HealthStore
from healthsync.metrics.config_loader import SyncConfig, get_sync_config
from healthsync.metrics.sources import MetricSource
from healthsync.metrics.stores.apple_health import AppleHealthExportStore
from healthsync.metrics.stores.memory import InMemoryHealthStore
from healthsync.metrics.sync.auth import AuthSession
from healthsync.metrics.sync.backfill import BackfillOrchestrator
from healthsync.metrics.sync.client import SyncClient
from healthsync.services.remote_api import RemoteApiClient
from healthsync.services.state import StateStore

logger = logging.getLogger("healthsync.services")


@dataclass
class Services:
    """Everything a request handler needs, built once per process."""

    settings: Settings
    http_client: httpx.AsyncClient
    state: StateStore
    store: HealthStore
    auth: AuthSession
    aggregator: DayAggregator
    sync_client: SyncClient
    orchestrator: BackfillOrchestrator
    remote_api: RemoteApiClient

    def today(self) -> date:
        return datetime.now(self.settings.tz).date()

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_services(
    settings: Settings | None = None,
    *,
    store: HealthStore | None = None,
    state: StateStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    config: SyncConfig | None = None,
) -> Services:
    """Wire the engine together.  Every collaborator can be overridden."""
    s = settings or get_settings()
    cfg = config or get_sync_config()
    tz = s.tz

    if store is None:
        if s.health_export_path:
            store = AppleHealthExportStore.from_path(s.health_export_path, tz)
        else:
            logger.warning("No health export configured; using an empty in-memory store")
            store = InMemoryHealthStore()

    state = state or StateStore(s.state_path)
    client = http_client or httpx.AsyncClient(timeout=s.http_timeout_seconds)
    auth = AuthSession(client, s.url(s.login_path), state)
    aggregator = DayAggregator(MetricSource(store, tz, cfg), tz)
    sync_client = SyncClient(client, s.url(s.persist_path), auth)

    async def _mark_synced(record: DailyRecord) -> None:
        state.mark_synced(datetime.now(tz))

    orchestrator = BackfillOrchestrator(
        aggregator, sync_client, tz, config=cfg, on_synced=_mark_synced
    )
    remote_api = RemoteApiClient(
        client, s.url(s.exercises_path), s.url(s.workouts_path), auth
    )
    return Services(
        settings=s,
        http_client=client,
        state=state,
        store=store,
        auth=auth,
        aggregator=aggregator,
        sync_client=sync_client,
        orchestrator=orchestrator,
        remote_api=remote_api,
    )


def get_services(request: Request) -> Services:
    """Return the container created in the app lifespan."""
    return request.app.state.services


# Annotated shortcut for route signatures
AppServices = Annotated[Services, Depends(get_services)]
