"""Bearer credential lifecycle: login, lookup, clear.

``AuthSession`` is constructed once at process start and handed to every
component that needs the credential (``SyncClient``, ``RemoteApiClient``).
The token is persisted in the ``StateStore`` so it survives restarts.
"""

from __future__ import annotations

import logging

import httpx

from healthsync.metrics.sync.errors import (
    AuthTransportFailure,
    InvalidCredentials,
    MalformedAuthResponse,
)
from healthsync.services.state import TOKEN_KEY, StateStore

logger = logging.getLogger("healthsync.metrics.sync.auth")


class AuthSession:
    """Owns the single bearer credential.  Last successful login wins.

    Args:
        http_client: Shared async HTTP client.
        login_url:   Full URL of the login endpoint.
        state:       Persisted key-value state holding the token.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        login_url: str,
        state: StateStore | None = None,
    ) -> None:
        self._http_client = http_client
        self._login_url = login_url
        self._state = state or StateStore()

    async def login(self, username: str, password: str) -> str:
        """Exchange credentials for a bearer token and store it.

        Returns:
            The new token.

        Raises:
            InvalidCredentials:    Non-2xx response.
            AuthTransportFailure:  Network-level failure.
            MalformedAuthResponse: 2xx without a usable ``token`` field.
        """
        logger.info("Logging in as %s", username)
        try:
            response = await self._http_client.post(
                self._login_url,
                json={"username": username, "password": password},
            )
        except httpx.HTTPError as exc:
            raise AuthTransportFailure(f"Login request failed: {exc}") from exc

        if not response.is_success:
            logger.warning("Login for %s rejected: HTTP %d", username, response.status_code)
            raise InvalidCredentials(response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedAuthResponse("Login response is not valid JSON") from exc

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise MalformedAuthResponse("Login response has no token field")

        self._state.set(TOKEN_KEY, token)
        logger.info("Login succeeded for %s", username)
        return token

    def current_credential(self) -> str | None:
        return self._state.get(TOKEN_KEY) or None

    @property
    def is_authenticated(self) -> bool:
        return self.current_credential() is not None

    def clear(self) -> None:
        """Forget the credential.  Safe to call when logged out."""
        self._state.clear(TOKEN_KEY)
        logger.info("Auth credential cleared")
