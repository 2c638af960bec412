"""Typed events produced by the response stream decoder."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from halyard.models.items import ConversationItem


class TokenUsage(BaseModel):
    input_tokens: int = 0
    cached_input_tokens: int | None = None
    output_tokens: int = 0
    reasoning_output_tokens: int | None = None
    total_tokens: int = 0

    @classmethod
    def from_provider(cls, usage: Mapping[str, Any]) -> TokenUsage:
        """Build from a Responses API ``usage`` object."""
        input_details = usage.get("input_tokens_details") or {}
        output_details = usage.get("output_tokens_details") or {}
        return cls(
            input_tokens=usage.get("input_tokens", 0),
            cached_input_tokens=input_details.get("cached_tokens"),
            output_tokens=usage.get("output_tokens", 0),
            reasoning_output_tokens=output_details.get("reasoning_tokens"),
            total_tokens=usage.get("total_tokens", 0),
        )


@dataclass(frozen=True, slots=True)
class Created:
    pass


@dataclass(frozen=True, slots=True)
class OutputItemDone:
    item: ConversationItem


@dataclass(frozen=True, slots=True)
class OutputTextDelta:
    delta: str


@dataclass(frozen=True, slots=True)
class ReasoningSummaryDelta:
    delta: str


@dataclass(frozen=True, slots=True)
class Completed:
    response_id: str
    token_usage: TokenUsage | None = None


ResponseEvent = Created | OutputItemDone | OutputTextDelta | ReasoningSummaryDelta | Completed


__all__ = [
    "Completed",
    "Created",
    "OutputItemDone",
    "OutputTextDelta",
    "ReasoningSummaryDelta",
    "ResponseEvent",
    "TokenUsage",
]
