"""Send one DailyRecord to the remote persistence endpoint.

One POST per call, no internal retry.  Outcomes:

    2xx                          → return None
    no credential                → Unauthenticated (nothing sent)
    record not serializable      → EncodingFailure
    httpx.HTTPError              → TransportFailure
    any other status             → ServerRejected(status_code)
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from healthsync.metrics.base import DailyRecord
from healthsync.metrics.sync.auth import AuthSession
from healthsync.metrics.sync.errors import (
    EncodingFailure,
    ServerRejected,
    TransportFailure,
    Unauthenticated,
)
from healthsync.models.records import DailyRecordPayload

logger = logging.getLogger("healthsync.metrics.sync.client")

_DETAIL_MAX_CHARS = 200


def bearer_headers(auth: AuthSession, json_body: bool = False) -> dict[str, str]:
    """Build authorization headers from the current credential snapshot.

    Raises:
        Unauthenticated: If no credential is held.
    """
    token = auth.current_credential()
    if not token:
        raise Unauthenticated()
    headers = {"Authorization": f"Bearer {token}"}
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


def response_detail(response: httpx.Response) -> str | None:
    """Short, log-safe excerpt of an error response body."""
    text = response.text.strip()
    return text[:_DETAIL_MAX_CHARS] if text else None


class SyncClient:
    """Authenticated writer for daily records.

    Args:
        http_client: Shared async HTTP client.
        persist_url: Full URL of the persistence endpoint.
        auth:        Session supplying the bearer credential.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        persist_url: str,
        auth: AuthSession,
    ) -> None:
        self._http_client = http_client
        self._persist_url = persist_url
        self._auth = auth

    async def send(self, record: DailyRecord) -> None:
        """POST ``record``.

        Raises:
            Unauthenticated:  No credential; no request was made.
            EncodingFailure:  The record cannot be represented on the wire.
            TransportFailure: Network-level failure.
            ServerRejected:   Non-2xx response.
        """
        headers = bearer_headers(self._auth, json_body=True)

        try:
            body = DailyRecordPayload.from_record(record).to_wire()
        except (ValidationError, ValueError, TypeError) as exc:
            logger.error("Record for %s could not be encoded: %s", record.day, exc)
            raise EncodingFailure(f"Could not encode record for {record.day}: {exc}") from exc

        try:
            response = await self._http_client.post(
                self._persist_url, content=body, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.warning("Sync of %s failed in transport: %s", record.day, exc)
            raise TransportFailure(f"Request to {self._persist_url} failed: {exc}") from exc

        if not response.is_success:
            logger.warning("Sync of %s rejected: HTTP %d", record.day, response.status_code)
            raise ServerRejected(response.status_code, response_detail(response))

        logger.info("Synced %s (HTTP %d)", record.day, response.status_code)
