"""Tests for sync_config.yaml loading and validation."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from healthsync.metrics.config_loader import (
    ConfigValidationError,
    SyncConfig,
    _validate_and_build,
    get_sync_config,
    load_sync_config,
    reload_sync_config,
)


class TestConfigLoading:
    """Tests for loading the bundled sync_config.yaml."""

    def test_load_default_config(self, sync_config: SyncConfig) -> None:
        assert sync_config.version == "1.0"
        assert sync_config.sleep.day_cutoff_hour == 18

    def test_default_sources_are_lenient(self, sync_config: SyncConfig) -> None:
        """Zero substitution is the default policy."""
        assert sync_config.sources.strict is False

    def test_asleep_values_include_unspecified_and_stages(
        self, sync_config: SyncConfig
    ) -> None:
        values = sync_config.sleep.asleep_values
        assert "HKCategoryValueSleepAnalysisAsleepUnspecified" in values
        assert "HKCategoryValueSleepAnalysisAsleepDeep" in values
        assert "HKCategoryValueSleepAnalysisInBed" not in values
        assert "HKCategoryValueSleepAnalysisAwake" not in values

    def test_backfill_defaults(self, sync_config: SyncConfig) -> None:
        bf = sync_config.backfill
        assert bf.enabled is True
        assert bf.max_days >= 365
        assert bf.rate_limit_ms == 0

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_sync_config(tmp_path / "nope.yaml")

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("sleep: [unclosed\n")
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            load_sync_config(path)

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_sync_config(path)
        assert config.sleep.day_cutoff_hour == 18
        assert config.sources.strict is False
        assert config.backfill.max_days == 3650


class TestConfigValidation:
    def test_cutoff_out_of_range(self) -> None:
        with pytest.raises(ConfigValidationError, match="day_cutoff_hour"):
            _validate_and_build({"sleep": {"day_cutoff_hour": 24}})

    def test_strict_must_be_bool(self) -> None:
        with pytest.raises(ConfigValidationError, match="sources.strict"):
            _validate_and_build({"sources": {"strict": "yes please"}})

    def test_enabled_must_be_bool(self) -> None:
        with pytest.raises(ConfigValidationError, match="backfill.enabled"):
            _validate_and_build({"backfill": {"enabled": "no"}})

    def test_negative_rate_limit(self) -> None:
        with pytest.raises(ConfigValidationError, match="rate_limit_ms"):
            _validate_and_build({"backfill": {"rate_limit_ms": -5}})

    def test_errors_are_collected(self) -> None:
        """All problems are reported in a single exception."""
        with pytest.raises(ConfigValidationError) as exc_info:
            _validate_and_build({
                "sleep": {"day_cutoff_hour": 30, "asleep_values": []},
                "backfill": {"max_days": 0},
            })
        message = str(exc_info.value)
        assert "3 validation error(s)" in message
        assert "asleep_values" in message
        assert "max_days" in message

    def test_custom_values(self) -> None:
        config = _validate_and_build({
            "version": "2.1",
            "sleep": {"day_cutoff_hour": 12, "asleep_values": ["X"]},
            "sources": {"strict": True},
            "backfill": {"enabled": False, "max_days": 30, "rate_limit_ms": 250},
        })
        assert config.version == "2.1"
        assert config.sleep.asleep_values == ["X"]
        assert config.sources.strict is True
        assert config.backfill.enabled is False
        assert config.backfill.rate_limit_ms == 250


class TestReload:
    def test_reload_replaces_singleton(self, tmp_path: Path) -> None:
        path = tmp_path / "sync_config.yaml"
        path.write_text(textwrap.dedent("""
            version: "9.9"
            sources:
              strict: true
        """))
        original = get_sync_config()
        try:
            reloaded = reload_sync_config(path)
            assert reloaded.version == "9.9"
            assert get_sync_config() is reloaded
        finally:
            reload_sync_config()
        assert get_sync_config().version == original.version

    def test_invalid_reload_keeps_old_config(self, tmp_path: Path) -> None:
        path = tmp_path / "sync_config.yaml"
        path.write_text("sleep:\n  day_cutoff_hour: 99\n")
        before = get_sync_config()
        with pytest.raises(ConfigValidationError):
            reload_sync_config(path)
        assert get_sync_config() is before
