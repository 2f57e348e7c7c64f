"""Shared Pydantic base models and utilities."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthSyncBase(BaseModel):
    """Base model with shared config for all healthsync schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class WireBase(HealthSyncBase):
    """Base for payloads exchanged with the remote service.

    Field names are snake_case in Python and camelCase on the wire.
    Non-finite floats cannot be represented in JSON and are rejected.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )
