"""healthsync metric engine.

This package reads the tracked daily metrics from a local health store,
folds them into one record per day, and syncs records to the remote
service.

Subpackages:
    stores/ — HealthStore implementations (in-memory, Apple Health export)
    sync/   — Auth session, sync client, range backfill, error taxonomy

Core modules:
    base          — MetricKind, HealthStore ABC and canonical data models
    sources       — Per-metric, per-day source adapter (zero on failure)
    aggregator    — Concurrent fan-out/fan-in over all metrics for a day
    config_loader — Load/validate/hot-reload sync_config.yaml
"""

from healthsync.metrics.base import (
    DailyRecord,
    HealthSample,
    HealthStore,
    MetricKind,
    MetricSample,
)
from healthsync.metrics.config_loader import SyncConfig, get_sync_config

__all__ = [
    "MetricKind",
    "HealthSample",
    "HealthStore",
    "MetricSample",
    "DailyRecord",
    "SyncConfig",
    "get_sync_config",
]
