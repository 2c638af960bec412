from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, field_validator


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_session_timestamp(value: datetime) -> str:
    """Render ``value`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class GitInfo(BaseModel):
    """Repository metadata. A missing field means it could not be determined."""

    commit_hash: str | None = None
    branch: str | None = None
    repository_url: str | None = None


class SessionMeta(BaseModel):
    """First record of every rollout file."""

    id: str
    timestamp: str
    instructions: str | None = None
    git: GitInfo | None = None

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc_millis(cls, value: str) -> str:
        if not value.endswith("Z"):
            raise ValueError("timestamp must be UTC with a trailing 'Z'")
        return value

    def to_json_line(self) -> str:
        return self.model_dump_json(exclude_none=True)


__all__ = ["GitInfo", "SessionMeta", "format_session_timestamp", "utc_now"]
