"""Decoding of provider stream frames into :mod:`halyard.models.events`.

Frames arrive already parsed (one mapping per server-sent event). Each
frame maps to at most one event, in arrival order. The stream ends right
after ``Completed``, or with a :class:`~halyard.errors.StreamError` raised
in place of the next event.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from typing import Any

from opentelemetry import trace
from pydantic import ValidationError

from halyard.config import HalyardSettings
from halyard.core.tracing import record_token_usage
from halyard.errors import StreamError, StreamIdleTimeout
from halyard.models.events import (
    Completed,
    Created,
    OutputItemDone,
    OutputTextDelta,
    ReasoningSummaryDelta,
    ResponseEvent,
    TokenUsage,
)
from halyard.models.items import parse_item

logger = logging.getLogger(__name__)

# Frames that carry nothing the consumer needs.
_IGNORED_FRAME_TYPES = frozenset(
    {
        "response.in_progress",
        "response.output_item.added",
        "response.output_text.done",
        "response.content_part.added",
        "response.content_part.done",
        "response.function_call_arguments.delta",
        "response.function_call_arguments.done",
        "response.reasoning_summary_part.added",
        "response.reasoning_summary_part.done",
        "response.reasoning_summary_text.done",
    }
)


def _failure_message(frame: Mapping[str, Any]) -> str:
    response = frame.get("response") or {}
    error = response.get("error") if isinstance(response, Mapping) else None
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    return "response.failed event received"


class ResponseStream:
    """Single-consumer async iterator of :data:`ResponseEvent` values."""

    def __init__(
        self,
        frames: AsyncIterable[Mapping[str, Any]],
        *,
        idle_timeout: float | None = None,
        span: trace.Span | None = None,
    ) -> None:
        self._frames: AsyncIterator[Mapping[str, Any]] = aiter(frames)
        self._idle_timeout = idle_timeout
        self._span = span
        self._finished = False

    @classmethod
    def from_settings(
        cls,
        frames: AsyncIterable[Mapping[str, Any]],
        settings: HalyardSettings,
        *,
        span: trace.Span | None = None,
    ) -> ResponseStream:
        return cls(frames, idle_timeout=settings.stream.idle_timeout_s, span=span)

    def __aiter__(self) -> ResponseStream:
        return self

    async def __anext__(self) -> ResponseEvent:
        if self._finished:
            raise StopAsyncIteration

        while True:
            try:
                frame = await self._next_frame()
            except StreamError:
                self._finished = True
                raise
            if frame is None:
                self._finished = True
                raise StreamError("stream closed before response.completed")

            event = self._decode(frame)
            if event is not None:
                return event

    async def _pull(self) -> Mapping[str, Any] | None:
        try:
            return await anext(self._frames)
        except StopAsyncIteration:
            return None

    async def _next_frame(self) -> Mapping[str, Any] | None:
        if self._idle_timeout is None:
            return await self._pull()
        try:
            return await asyncio.wait_for(self._pull(), timeout=self._idle_timeout)
        except TimeoutError:
            raise StreamIdleTimeout(
                f"no stream event within {self._idle_timeout:g}s"
            ) from None

    def _decode(self, frame: Mapping[str, Any]) -> ResponseEvent | None:
        kind = frame.get("type")

        if kind == "response.created":
            return Created()

        if kind == "response.output_item.done":
            raw_item = frame.get("item")
            if raw_item is None:
                logger.debug("output_item.done frame without an item")
                return None
            try:
                return OutputItemDone(parse_item(raw_item))
            except ValidationError as exc:
                logger.debug("Skipping undecodable output item: %s", exc)
                return None

        if kind == "response.output_text.delta":
            return OutputTextDelta(str(frame.get("delta", "")))

        if kind == "response.reasoning_summary_text.delta":
            return ReasoningSummaryDelta(str(frame.get("delta", "")))

        if kind == "response.completed":
            return self._complete(frame)

        if kind == "response.failed":
            self._finished = True
            response = frame.get("response") or {}
            raise StreamError(_failure_message(frame), response_id=response.get("id"))

        if kind not in _IGNORED_FRAME_TYPES:
            logger.debug("Ignoring unhandled stream frame type %r", kind)
        return None

    def _complete(self, frame: Mapping[str, Any]) -> Completed:
        response = frame.get("response")
        if not isinstance(response, Mapping) or "id" not in response:
            self._finished = True
            raise StreamError("response.completed frame without a response id")

        usage_raw = response.get("usage")
        usage = TokenUsage.from_provider(usage_raw) if isinstance(usage_raw, Mapping) else None
        if usage is not None:
            record_token_usage(usage, span=self._span)

        self._finished = True
        return Completed(response_id=str(response["id"]), token_usage=usage)


__all__ = ["ResponseStream"]
