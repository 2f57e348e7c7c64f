"""Load, validate, and hot-reload the healthsync engine configuration.

The config lives in ``sync_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_sync_config()`` to re-read from
disk after an edit; no restart required.

Usage::

    from healthsync.metrics.config_loader import get_sync_config

    config = get_sync_config()
    cutoff = config.sleep.day_cutoff_hour   # 18
    strict = config.sources.strict          # False
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("healthsync.metrics.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "sync_config.yaml"

_DEFAULT_ASLEEP_VALUES = [
    "HKCategoryValueSleepAnalysisAsleepUnspecified",
    "HKCategoryValueSleepAnalysisAsleep",
    "HKCategoryValueSleepAnalysisAsleepCore",
    "HKCategoryValueSleepAnalysisAsleepDeep",
    "HKCategoryValueSleepAnalysisAsleepREM",
]


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class SleepConfig:
    """Sleep window and stage selection."""

    day_cutoff_hour: int
    asleep_values: list[str]


@dataclass
class SourcesConfig:
    """Metric source error policy."""

    strict: bool = False


@dataclass
class BackfillConfig:
    """Range backfill settings."""

    enabled: bool
    max_days: int
    rate_limit_ms: int


@dataclass
class SyncConfig:
    """Complete, validated engine configuration.

    Attributes:
        version:  Config schema version string.
        sleep:    Sleep window settings.
        sources:  Metric source error policy.
        backfill: Range backfill settings.
    """

    version: str
    sleep: SleepConfig
    sources: SourcesConfig
    backfill: BackfillConfig


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when sync_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    try:
        import yaml  # pyyaml
    except ImportError as exc:
        raise ImportError(
            "pyyaml is required for config loading. Install with: pip install pyyaml"
        ) from exc

    if not path.exists():
        raise FileNotFoundError(f"Sync config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> SyncConfig:
    """Validate the raw YAML dict and construct a SyncConfig.

    Collects every problem before raising so one edit can fix them all.

    Raises:
        ConfigValidationError: If any field is missing or invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Sleep ──
    sl_raw = raw.get("sleep") or {}
    cutoff = sl_raw.get("day_cutoff_hour", 18)
    try:
        cutoff = int(cutoff)
    except (TypeError, ValueError):
        errors.append(f"sleep.day_cutoff_hour must be an integer, got {cutoff!r}")
        cutoff = 18
    if not (0 <= cutoff <= 23):
        errors.append(f"sleep.day_cutoff_hour = {cutoff} is out of range [0, 23]")

    asleep_values = sl_raw.get("asleep_values", _DEFAULT_ASLEEP_VALUES)
    if not isinstance(asleep_values, list) or not asleep_values:
        errors.append("sleep.asleep_values must be a non-empty list")
        asleep_values = list(_DEFAULT_ASLEEP_VALUES)
    sleep = SleepConfig(
        day_cutoff_hour=cutoff,
        asleep_values=[str(v) for v in asleep_values],
    )

    # ── Sources ──
    src_raw = raw.get("sources") or {}
    strict = src_raw.get("strict", False)
    if not isinstance(strict, bool):
        errors.append(f"sources.strict must be true or false, got {strict!r}")
        strict = False
    sources = SourcesConfig(strict=strict)

    # ── Backfill ──
    bf_raw = raw.get("backfill") or {}
    max_days = rate_limit_ms = 0
    try:
        max_days = int(bf_raw.get("max_days", 3650))
        rate_limit_ms = int(bf_raw.get("rate_limit_ms", 0))
    except (TypeError, ValueError) as exc:
        errors.append(f"backfill settings must be integers: {exc}")
    if max_days < 1:
        errors.append(f"backfill.max_days = {max_days} must be at least 1")
    if rate_limit_ms < 0:
        errors.append(f"backfill.rate_limit_ms = {rate_limit_ms} must not be negative")
    enabled = bf_raw.get("enabled", True)
    if not isinstance(enabled, bool):
        errors.append(f"backfill.enabled must be true or false, got {enabled!r}")
        enabled = True
    backfill = BackfillConfig(
        enabled=enabled,
        max_days=max_days,
        rate_limit_ms=rate_limit_ms,
    )

    if errors:
        raise ConfigValidationError(
            f"sync_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return SyncConfig(
        version=version,
        sleep=sleep,
        sources=sources,
        backfill=backfill,
    )


def load_sync_config(path: Path | None = None) -> SyncConfig:
    """Load and validate the sync config from disk.

    Args:
        path: Override path to YAML. Uses the bundled sync_config.yaml by default.

    Returns:
        Validated SyncConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded sync config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: SyncConfig | None = None
_config_lock = threading.Lock()


def get_sync_config() -> SyncConfig:
    """Return the global SyncConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_sync_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_sync_config()
    return _config


def reload_sync_config(path: Path | None = None) -> SyncConfig:
    """Reload the sync config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_sync_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded sync config: %s → %s", old_version, new_config.version)
    return new_config
