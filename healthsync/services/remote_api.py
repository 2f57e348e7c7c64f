"""Client for the remote exercise catalog and workout submission endpoints.

Uses the same credential gating and error taxonomy as ``SyncClient``:
no token → ``Unauthenticated`` without touching the network, transport
problems → ``TransportFailure``, non-2xx → ``ServerRejected``.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from healthsync.metrics.sync.auth import AuthSession
from healthsync.metrics.sync.client import bearer_headers, response_detail
from healthsync.metrics.sync.errors import EncodingFailure, ServerRejected, TransportFailure
from healthsync.models.workouts import Exercise, WorkoutData

logger = logging.getLogger("healthsync.remote_api")


class RemoteApiClient:
    """Authenticated access to ``GET /exercises`` and ``POST /workouts``.

    Args:
        http_client:   Shared async HTTP client.
        exercises_url: Full URL of the exercise catalog.
        workouts_url:  Full URL of the workout endpoint.
        auth:          Session supplying the bearer credential.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        exercises_url: str,
        workouts_url: str,
        auth: AuthSession,
    ) -> None:
        self._http_client = http_client
        self._exercises_url = exercises_url
        self._workouts_url = workouts_url
        self._auth = auth

    async def fetch_exercises(self) -> list[Exercise]:
        """Return the exercise catalog.

        Raises:
            Unauthenticated, TransportFailure, ServerRejected, EncodingFailure
        """
        headers = bearer_headers(self._auth)
        response = await self._request("GET", self._exercises_url, headers=headers)
        try:
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError("expected a JSON array")
            exercises = [Exercise.model_validate(item) for item in payload]
        except (ValueError, ValidationError) as exc:
            raise EncodingFailure(f"Unexpected exercise catalog response: {exc}") from exc
        logger.debug("Fetched %d exercises", len(exercises))
        return exercises

    async def save_workout(self, workout: WorkoutData) -> None:
        """Submit one workout.

        Raises:
            Unauthenticated, TransportFailure, ServerRejected
        """
        headers = bearer_headers(self._auth, json_body=True)
        await self._request(
            "POST", self._workouts_url, headers=headers, content=workout.to_wire()
        )
        logger.info("Saved workout %s on %s", workout.exercise_id, workout.date)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http_client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Request to {url} failed: {exc}") from exc
        if not response.is_success:
            logger.warning("%s %s rejected: HTTP %d", method, url, response.status_code)
            raise ServerRejected(response.status_code, response_detail(response))
        return response
