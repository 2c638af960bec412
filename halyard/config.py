from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict


class ReasoningEffort(StrEnum):
    """Configured reasoning effort. ``none`` disables the reasoning block."""

    low = "low"
    medium = "medium"
    high = "high"
    none = "none"


class ReasoningSummary(StrEnum):
    """Configured reasoning summary. ``none`` omits the summary request."""

    auto = "auto"
    concise = "concise"
    detailed = "detailed"
    none = "none"


class StreamConfig(BaseModel):
    idle_timeout_s: float = Field(default=300.0, gt=0)


class RolloutConfig(BaseModel):
    enabled: bool = True
    mailbox_capacity: int = Field(default=256, ge=1)
    git_probe_timeout_s: float = Field(default=5.0, gt=0)
    fsync: bool = True


class TelemetryConfig(BaseModel):
    """OpenTelemetry tracing configuration.

    ``target`` is ``None`` (disabled), ``"stdout"``, ``"file://<path>"``,
    or an OTLP endpoint.
    """

    enabled: bool = False
    target: str | None = None
    protocol: str = "grpc"
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    service_name: str = "halyard"
    env: str = "dev"

    @field_validator("protocol")
    @classmethod
    def _known_protocol(cls, value: str) -> str:
        if value not in {"grpc", "http"}:
            raise ValueError("telemetry.protocol must be 'grpc' or 'http'")
        return value


def _default_home() -> Path:
    return Path.home() / ".halyard"


class HalyardSettings(BaseSettings):
    home: Path = Field(default_factory=_default_home)
    cwd: Path = Field(default_factory=Path.cwd)
    model: str = "codex-mini-latest"
    model_supports_reasoning_summaries: bool = False
    model_reasoning_effort: ReasoningEffort = ReasoningEffort.medium
    model_reasoning_summary: ReasoningSummary = ReasoningSummary.auto
    instructions: str | None = None
    base_instructions_file: Path | None = None
    disable_response_storage: bool = False
    stream: StreamConfig = Field(default_factory=StreamConfig)
    rollout: RolloutConfig = Field(default_factory=RolloutConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    model_config = SettingsConfigDict(
        env_prefix="HALYARD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @property
    def sessions_dir(self) -> Path:
        return self.home / "sessions"

    def base_instructions_override(self) -> str | None:
        if self.base_instructions_file is None:
            return None
        return self.base_instructions_file.read_text(encoding="utf-8")


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | Path = "config/halyard.yaml") -> HalyardSettings:
    """Load settings from YAML; an optional top-level ``halyard:`` key is unwrapped."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError("config file must contain a top-level mapping")

    raw = loaded.get("halyard", loaded)
    if not isinstance(raw, dict):
        raise ValueError("halyard config section must be a mapping")

    # HALYARD_* variables win over file values.
    env_values = EnvSettingsSource(HalyardSettings)()
    return HalyardSettings(**_deep_merge(raw, env_values))


__all__ = [
    "HalyardSettings",
    "ReasoningEffort",
    "ReasoningSummary",
    "RolloutConfig",
    "StreamConfig",
    "TelemetryConfig",
    "load_config",
]
