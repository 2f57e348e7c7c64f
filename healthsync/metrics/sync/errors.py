"""Error taxonomy for metric reads, sync and authentication."""

from __future__ import annotations


class SourceUnavailable(Exception):
    """A metric type is unsupported, denied, or unreadable in the local store.

    Absorbed at the metric source boundary unless strict mode is enabled.
    """


class AggregationError(Exception):
    """A day could not be aggregated (strict mode only)."""


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


class SyncError(Exception):
    """Base class for failures sending a record to the remote service."""

    #: Short machine-readable kind, used in reports and API responses.
    kind: str = "sync_error"


class Unauthenticated(SyncError):
    """No bearer credential is present; nothing was sent."""

    kind = "unauthenticated"

    def __init__(self, message: str = "No auth token available") -> None:
        super().__init__(message)


class TransportFailure(SyncError):
    """The request failed at the network level."""

    kind = "transport_failure"


class ServerRejected(SyncError):
    """The remote service answered with a non-2xx status."""

    kind = "server_rejected"

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        self.status_code = status_code
        self.detail = detail
        message = f"Server returned status code {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EncodingFailure(SyncError):
    """The record could not be serialized to the wire format."""

    kind = "encoding_failure"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class AuthError(Exception):
    """Base class for login failures.  No credential is stored."""


class InvalidCredentials(AuthError):
    """The login endpoint rejected the username/password."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Login rejected with status code {status_code}")


class AuthTransportFailure(AuthError):
    """The login request failed at the network level."""


class MalformedAuthResponse(AuthError):
    """The login response was not JSON or carried no token."""
