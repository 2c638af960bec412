"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from halyard.config import (
    HalyardSettings,
    ReasoningEffort,
    ReasoningSummary,
    RolloutConfig,
    StreamConfig,
    TelemetryConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("HALYARD_"):
            monkeypatch.delenv(key)


class TestDefaults:
    def test_settings_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        settings = HalyardSettings()

        assert settings.model == "codex-mini-latest"
        assert settings.model_reasoning_effort is ReasoningEffort.medium
        assert settings.model_reasoning_summary is ReasoningSummary.auto
        assert settings.model_supports_reasoning_summaries is False
        assert settings.sessions_dir == settings.home / "sessions"

    def test_rollout_defaults(self) -> None:
        cfg = RolloutConfig()
        assert cfg.enabled is True
        assert cfg.mailbox_capacity == 256
        assert cfg.git_probe_timeout_s == 5.0
        assert cfg.fsync is True

    def test_stream_idle_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            StreamConfig(idle_timeout_s=0)

    def test_mailbox_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            RolloutConfig(mailbox_capacity=0)


class TestTelemetryConfig:
    def test_disabled_by_default(self) -> None:
        cfg = TelemetryConfig()
        assert cfg.enabled is False
        assert cfg.target is None

    def test_unknown_protocol_rejected(self) -> None:
        with pytest.raises(ValidationError, match="grpc"):
            TelemetryConfig(protocol="thrift")

    def test_sample_rate_bounds(self) -> None:
        with pytest.raises(ValidationError):
            TelemetryConfig(sample_rate=1.5)


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HALYARD_MODEL", "o3")
        monkeypatch.setenv("HALYARD_ROLLOUT__MAILBOX_CAPACITY", "8")

        settings = HalyardSettings()

        assert settings.model == "o3"
        assert settings.rollout.mailbox_capacity == 8


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_reads_halyard_section(self, tmp_path: Path) -> None:
        path = tmp_path / "halyard.yaml"
        path.write_text(
            "halyard:\n"
            "  model: o3\n"
            "  model_reasoning_effort: high\n"
            "  model_reasoning_summary: none\n"
            f"  home: {tmp_path / 'home'}\n"
            "  telemetry:\n"
            "    enabled: true\n"
            "    target: stdout\n",
            encoding="utf-8",
        )

        settings = load_config(path)

        assert settings.model == "o3"
        assert settings.model_reasoning_effort is ReasoningEffort.high
        assert settings.model_reasoning_summary is ReasoningSummary.none
        assert settings.sessions_dir == tmp_path / "home" / "sessions"
        assert settings.telemetry.target == "stdout"

    def test_top_level_mapping_without_section(self, tmp_path: Path) -> None:
        path = tmp_path / "flat.yaml"
        path.write_text("model: gpt-4.1\n", encoding="utf-8")

        assert load_config(path).model == "gpt-4.1"

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "halyard.yaml"
        path.write_text("halyard:\n  stream:\n    idle_timeout_s: 60\n", encoding="utf-8")
        monkeypatch.setenv("HALYARD_STREAM__IDLE_TIMEOUT_S", "5")

        assert load_config(path).stream.idle_timeout_s == 5

    def test_nested_env_keeps_sibling_file_values(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "halyard.yaml"
        path.write_text(
            "halyard:\n  rollout:\n    mailbox_capacity: 4\n    fsync: true\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("HALYARD_ROLLOUT__FSYNC", "false")

        rollout = load_config(path).rollout

        assert rollout.mailbox_capacity == 4
        assert rollout.fsync is False

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="top-level mapping"):
            load_config(path)

    def test_base_instructions_file(self, tmp_path: Path) -> None:
        instructions = tmp_path / "base.md"
        instructions.write_text("Custom base.", encoding="utf-8")

        settings = HalyardSettings(base_instructions_file=instructions)

        assert settings.base_instructions_override() == "Custom base."
        assert HalyardSettings().base_instructions_override() is None
