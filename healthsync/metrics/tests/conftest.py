"""Shared fixtures, sample builders and a fake remote service for engine tests."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

import httpx
import pytest

from healthsync.metrics.aggregator import DayAggregator
from healthsync.metrics.base import HealthSample, MetricKind
from healthsync.metrics.config_loader import SyncConfig, load_sync_config
from healthsync.metrics.sources import MetricSource
from healthsync.metrics.stores.memory import InMemoryHealthStore
from healthsync.metrics.sync.auth import AuthSession
from healthsync.metrics.sync.backfill import BackfillOrchestrator
from healthsync.metrics.sync.client import SyncClient
from healthsync.services.state import TOKEN_KEY, StateStore

# Fixed +01:00 zone so day boundaries differ from UTC without needing tzdata
TZ = timezone(timedelta(hours=1))
TEST_DATE = date(2026, 2, 23)
NOW = datetime(2026, 2, 23, 20, 30, tzinfo=TZ)

BASE_URL = "https://dashboard.test/api/v1"
LOGIN_URL = f"{BASE_URL}/auth/login"
PERSIST_URL = f"{BASE_URL}/health/persist"
EXERCISES_URL = f"{BASE_URL}/exercises"
WORKOUTS_URL = f"{BASE_URL}/workouts"
TEST_TOKEN = "tok-123"


# ---------------------------------------------------------------------------
# Sample builders
# ---------------------------------------------------------------------------


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=TZ)


def quantity(
    kind: MetricKind,
    value: float,
    unit: str,
    start: datetime,
    end: datetime | None = None,
) -> HealthSample:
    return HealthSample(
        type_id=kind.type_id,
        value=value,
        unit=unit,
        start=start,
        end=end or start + timedelta(minutes=5),
    )


def sleep_sample(
    start: datetime,
    end: datetime,
    stage: str = "HKCategoryValueSleepAnalysisAsleepCore",
) -> HealthSample:
    return HealthSample(
        type_id=MetricKind.SLEEP.type_id,
        value=0.0,
        unit="",
        start=start,
        end=end,
        category=stage,
    )


class PartiallyBrokenStore(InMemoryHealthStore):
    """Fails for every type in ``broken``; serves the rest normally."""

    def __init__(self, broken: set[str], samples: list[HealthSample]) -> None:
        super().__init__(samples)
        self._broken = broken

    async def query_samples(self, type_id, start, end):
        if type_id in self._broken:
            raise PermissionError(f"denied: {type_id}")
        return await super().query_samples(type_id, start, end)

    async def latest_sample(self, type_id, until=None):
        if type_id in self._broken:
            raise PermissionError(f"denied: {type_id}")
        return await super().latest_sample(type_id, until)


# ---------------------------------------------------------------------------
# Fake remote service
# ---------------------------------------------------------------------------


class FakeRemote:
    """httpx handler standing in for the dashboard API.

    Attributes:
        requests:       Every request received, in order.
        persist_status: Status for /health/persist; a callable gets the
                        decoded body and returns the status.
        login_status:   Status for /auth/login.
        login_body:     JSON body returned by a successful login.
        fail_transport: Raise httpx.ConnectError instead of answering.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.persist_status: int | Callable[[dict], int] = 200
        self.login_status = 200
        self.login_body: object = {"token": TEST_TOKEN, "user": "ada"}
        self.exercises: list[dict] = []
        self.fail_transport = False

    @property
    def persisted(self) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.path.endswith("/health/persist")
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if path.endswith("/auth/login"):
            if self.login_status != 200:
                return httpx.Response(self.login_status, json={"error": "bad credentials"})
            if isinstance(self.login_body, str):
                return httpx.Response(200, text=self.login_body)
            return httpx.Response(200, json=self.login_body)
        if path.endswith("/health/persist"):
            status = self.persist_status
            if callable(status):
                status = status(json.loads(request.content))
            return httpx.Response(status, text="" if status < 300 else "rejected")
        if path.endswith("/exercises"):
            return httpx.Response(200, json=self.exercises)
        if path.endswith("/workouts"):
            return httpx.Response(201, json={"id": "w-1"})
        return httpx.Response(404)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sync_config() -> SyncConfig:
    """Load the real sync config for tests."""
    return load_sync_config()


@pytest.fixture
def strict_config(sync_config: SyncConfig) -> SyncConfig:
    return replace(sync_config, sources=replace(sync_config.sources, strict=True))


@pytest.fixture
def store() -> InMemoryHealthStore:
    return InMemoryHealthStore()


@pytest.fixture
def source(store: InMemoryHealthStore, sync_config: SyncConfig) -> MetricSource:
    return MetricSource(store, TZ, sync_config)


@pytest.fixture
def aggregator(source: MetricSource) -> DayAggregator:
    return DayAggregator(source, TZ, clock=lambda: NOW)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def http_client(remote: FakeRemote) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(remote))


@pytest.fixture
def state() -> StateStore:
    return StateStore()


@pytest.fixture
def auth(http_client: httpx.AsyncClient, state: StateStore) -> AuthSession:
    return AuthSession(http_client, LOGIN_URL, state)


@pytest.fixture
def logged_in(auth: AuthSession, state: StateStore) -> AuthSession:
    state.set(TOKEN_KEY, TEST_TOKEN)
    return auth


@pytest.fixture
def sync_client(http_client: httpx.AsyncClient, auth: AuthSession) -> SyncClient:
    return SyncClient(http_client, PERSIST_URL, auth)


@pytest.fixture
def orchestrator(
    aggregator: DayAggregator, sync_client: SyncClient, sync_config: SyncConfig
) -> BackfillOrchestrator:
    return BackfillOrchestrator(aggregator, sync_client, TZ, config=sync_config)
