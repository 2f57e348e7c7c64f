"""Tests for SyncClient: credential gating, wire format, outcome classification."""

from __future__ import annotations

import json
from datetime import timedelta

import httpx
import pytest

from healthsync.metrics.base import DailyRecord
from healthsync.metrics.sync.client import SyncClient
from healthsync.metrics.sync.errors import (
    EncodingFailure,
    ServerRejected,
    SyncError,
    TransportFailure,
    Unauthenticated,
)
from healthsync.metrics.tests.conftest import NOW, PERSIST_URL, TEST_DATE, TEST_TOKEN, at

YESTERDAY = TEST_DATE - timedelta(days=1)


def _record(**overrides) -> DailyRecord:
    values = dict(
        day=TEST_DATE,
        timestamp=NOW,
        steps=8000.0,
        active_energy=412.5,
        water=1.25,
        sleep=7.5,
        weight=70.5,
        weight_date=at(YESTERDAY, 7, 30),
        calories=2100.0,
        carbs=250.0,
        fat=70.0,
        protein=110.0,
    )
    values.update(overrides)
    return DailyRecord(**values)


class TestCredentialGating:
    @pytest.mark.asyncio
    async def test_no_credential_makes_no_request(self, sync_client, remote) -> None:
        with pytest.raises(Unauthenticated):
            await sync_client.send(_record())
        assert remote.requests == []

    @pytest.mark.asyncio
    async def test_after_clear_no_request(self, logged_in, sync_client, remote) -> None:
        logged_in.clear()
        with pytest.raises(Unauthenticated):
            await sync_client.send(_record())
        assert len(remote.requests) == 0

    @pytest.mark.asyncio
    async def test_bearer_header_attached(self, logged_in, sync_client, remote) -> None:
        await sync_client.send(_record())
        assert len(remote.requests) == 1
        request = remote.requests[0]
        assert request.method == "POST"
        assert str(request.url) == PERSIST_URL
        assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_credential_read_at_call_time(self, logged_in, state, sync_client, remote) -> None:
        from healthsync.services.state import TOKEN_KEY

        state.set(TOKEN_KEY, "rotated")
        await sync_client.send(_record())
        assert remote.requests[0].headers["Authorization"] == "Bearer rotated"


class TestWireFormat:
    @pytest.mark.asyncio
    async def test_body_fields(self, logged_in, sync_client, remote) -> None:
        await sync_client.send(_record())
        body = remote.persisted[0]
        assert body["steps"] == 8000.0
        assert body["activity"] == 412.5
        assert body["water"] == 1.25
        assert body["sleep"] == 7.5
        assert body["weight"] == 70.5
        assert body["bodyFat"] == 0.0
        assert body["waistCircumference"] == 0.0
        assert body["calories"] == 2100.0
        assert body["carbs"] == 250.0
        assert body["fat"] == 70.0
        assert body["protein"] == 110.0

    @pytest.mark.asyncio
    async def test_dates_are_iso8601(self, logged_in, sync_client, remote) -> None:
        from datetime import datetime

        await sync_client.send(_record())
        body = remote.persisted[0]
        assert datetime.fromisoformat(body["timestamp"]) == NOW
        assert datetime.fromisoformat(body["weightDate"]) == at(YESTERDAY, 7, 30)

    @pytest.mark.asyncio
    async def test_absent_companion_dates_omitted(self, logged_in, sync_client, remote) -> None:
        await sync_client.send(_record(weight=0.0, weight_date=None))
        body = remote.persisted[0]
        assert "weightDate" not in body
        assert "bodyFatDate" not in body
        assert "waistDate" not in body
        assert set(body) == {
            "timestamp", "steps", "sleep", "activity", "water", "weight",
            "bodyFat", "waistCircumference", "calories", "carbs", "fat", "protein",
        }

    @pytest.mark.asyncio
    async def test_non_finite_value_is_encoding_failure(self, logged_in, sync_client, remote) -> None:
        with pytest.raises(EncodingFailure):
            await sync_client.send(_record(steps=float("nan")))
        assert remote.requests == []


class TestOutcomes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    async def test_2xx_is_success(self, status, logged_in, sync_client, remote) -> None:
        remote.persist_status = status
        assert await sync_client.send(_record()) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [300, 400, 401, 422, 500, 503])
    async def test_non_2xx_is_server_rejected(self, status, logged_in, sync_client, remote) -> None:
        remote.persist_status = status
        with pytest.raises(ServerRejected) as exc_info:
            await sync_client.send(_record())
        assert exc_info.value.status_code == status
        assert exc_info.value.detail == "rejected"
        assert len(remote.requests) == 1  # no retry

    @pytest.mark.asyncio
    async def test_transport_failure(self, logged_in, sync_client, remote) -> None:
        remote.fail_transport = True
        with pytest.raises(TransportFailure) as exc_info:
            await sync_client.send(_record())
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert len(remote.requests) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_transport_failure(self, logged_in, auth) -> None:
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = SyncClient(
            httpx.AsyncClient(transport=httpx.MockTransport(_timeout)), PERSIST_URL, auth
        )
        with pytest.raises(TransportFailure, match="timed out"):
            await client.send(_record())

    def test_error_kinds(self) -> None:
        assert ServerRejected(500).kind == "server_rejected"
        assert Unauthenticated().kind == "unauthenticated"
        assert issubclass(TransportFailure, SyncError)
        assert str(ServerRejected(418)) == "Server returned status code 418"


def test_payload_round_trips_through_json() -> None:
    from healthsync.models.records import DailyRecordPayload

    wire = DailyRecordPayload.from_record(_record()).to_wire()
    parsed = DailyRecordPayload.model_validate(json.loads(wire))
    assert parsed.steps == 8000.0
    assert parsed.weight_date == at(YESTERDAY, 7, 30)
