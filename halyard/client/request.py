"""Responses API request assembly.

Items are stored in their lossless internal shape. The provider accepts a
slightly different shape for ``function_call_output`` (``output`` is a bare
string), so every item passes through :func:`sanitize_item` on the way out.
Sanitization is a projection: the stored item is never modified.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field
from pydantic_core import PydanticSerializationError

from halyard.client.prompt import Prompt
from halyard.client.tools import create_tools_json
from halyard.config import HalyardSettings, ReasoningEffort, ReasoningSummary
from halyard.models.items import ConversationItem, FunctionCallOutputItem, OtherItem

logger = logging.getLogger(__name__)

_REASONING_MODEL_PREFIXES = ("o", "codex")


class OpenAiReasoningEffort(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"


class OpenAiReasoningSummary(StrEnum):
    auto = "auto"
    concise = "concise"
    detailed = "detailed"


_EFFORT_TO_WIRE: dict[ReasoningEffort, OpenAiReasoningEffort | None] = {
    ReasoningEffort.low: OpenAiReasoningEffort.low,
    ReasoningEffort.medium: OpenAiReasoningEffort.medium,
    ReasoningEffort.high: OpenAiReasoningEffort.high,
    ReasoningEffort.none: None,
}

_SUMMARY_TO_WIRE: dict[ReasoningSummary, OpenAiReasoningSummary | None] = {
    ReasoningSummary.auto: OpenAiReasoningSummary.auto,
    ReasoningSummary.concise: OpenAiReasoningSummary.concise,
    ReasoningSummary.detailed: OpenAiReasoningSummary.detailed,
    ReasoningSummary.none: None,
}


class Reasoning(BaseModel):
    effort: OpenAiReasoningEffort
    summary: OpenAiReasoningSummary | None = None


def model_supports_reasoning_summaries(model: str, *, force: bool = False) -> bool:
    """Whether to send a reasoning block for ``model``.

    ``force`` comes from configuration and lets non-OpenAI providers that
    support reasoning opt in. Otherwise only known reasoning model families
    qualify, so models such as ``gpt-4.1`` never receive one.
    """
    if force:
        return True
    return model.startswith(_REASONING_MODEL_PREFIXES)


def create_reasoning_param(
    model: str,
    effort: ReasoningEffort,
    summary: ReasoningSummary,
    *,
    force: bool = False,
) -> Reasoning | None:
    if not model_supports_reasoning_summaries(model, force=force):
        return None
    wire_effort = _EFFORT_TO_WIRE[ReasoningEffort(effort)]
    if wire_effort is None:
        return None
    return Reasoning(effort=wire_effort, summary=_SUMMARY_TO_WIRE[ReasoningSummary(summary)])


def _fallback_item_json(item: ConversationItem) -> dict[str, Any]:
    return {"type": getattr(item, "type", "other"), "text": repr(item)}


def sanitize_item(item: ConversationItem) -> dict[str, Any]:
    """Project ``item`` into the shape the provider accepts."""
    try:
        value = item.model_dump(mode="json")
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        logger.warning("Falling back to text encoding for %s item: %s", item.type, exc)
        return _fallback_item_json(item)

    if isinstance(item, FunctionCallOutputItem):
        output = value.get("output")
        if isinstance(output, dict) and "content" in output:
            value["output"] = output["content"]
    return value


def sanitize_input(items: Iterable[ConversationItem]) -> list[dict[str, Any]]:
    # Unknown item kinds are never sent back to the provider.
    return [sanitize_item(item) for item in items if not isinstance(item, OtherItem)]


class ResponsesApiRequest(BaseModel):
    """Payload POSTed to the Responses API for one turn."""

    model: str
    instructions: str
    input: list[dict[str, Any]]
    tools: list[dict[str, Any]] = Field(default_factory=list)
    tool_choice: str = "auto"
    parallel_tool_calls: bool = False
    reasoning: Reasoning | None = None
    store: bool = False
    stream: bool = True
    include: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json")
        if self.reasoning is None:
            payload.pop("reasoning")
        elif self.reasoning.summary is None:
            payload["reasoning"].pop("summary")
        return payload


def build_request(
    prompt: Prompt,
    *,
    model: str,
    reasoning: Reasoning | None = None,
    tools: list[dict[str, Any]] | None = None,
) -> ResponsesApiRequest:
    return ResponsesApiRequest(
        model=model,
        instructions=prompt.get_full_instructions(model),
        input=sanitize_input(prompt.input),
        tools=create_tools_json(prompt, model) if tools is None else tools,
        reasoning=reasoning,
        store=prompt.store,
    )


def build_request_from_settings(prompt: Prompt, settings: HalyardSettings) -> ResponsesApiRequest:
    """Build a request for the configured model and storage policy.

    Instructions set on ``prompt`` win over configured ones.
    """
    updates: dict[str, Any] = {}
    if prompt.user_instructions is None and settings.instructions is not None:
        updates["user_instructions"] = settings.instructions
    if prompt.base_instructions_override is None:
        override = settings.base_instructions_override()
        if override is not None:
            updates["base_instructions_override"] = override
    if settings.disable_response_storage:
        updates["store"] = False
    if updates:
        prompt = prompt.model_copy(update=updates)

    reasoning = create_reasoning_param(
        settings.model,
        settings.model_reasoning_effort,
        settings.model_reasoning_summary,
        force=settings.model_supports_reasoning_summaries,
    )
    return build_request(prompt, model=settings.model, reasoning=reasoning)


__all__ = [
    "OpenAiReasoningEffort",
    "OpenAiReasoningSummary",
    "Reasoning",
    "ResponsesApiRequest",
    "build_request",
    "build_request_from_settings",
    "create_reasoning_param",
    "model_supports_reasoning_summaries",
    "sanitize_input",
    "sanitize_item",
]
