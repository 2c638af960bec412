"""Conversation spans and trace-context propagation.

A :class:`TraceContext` captures the active span context as a plain
``dict[str, str]`` carrier so it can cross task or process boundaries and
later parent new spans. With tracing disabled, the carrier is empty and
every span is non-recording.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from typing import TYPE_CHECKING, Literal

from opentelemetry import propagate, trace

if TYPE_CHECKING:
    from halyard.models.events import TokenUsage

SpanName = Literal[
    "user_message",
    "llm_request",
    "assistant_msg",
    "tool_call",
    "exec_cmd",
    "function_call_output",
]

SPAN_NAMES: frozenset[str] = frozenset(
    {
        "user_message",
        "llm_request",
        "assistant_msg",
        "tool_call",
        "exec_cmd",
        "function_call_output",
    }
)

_FALLBACK_SPAN_NAME = "span"

# Attribute values larger than this are cut to keep trace storage sane.
OTEL_CONTENT_LIMIT = 64 * 1024

_TRACER_NAME = "halyard.conversation"


def truncate_content(value: str) -> str:
    if len(value) > OTEL_CONTENT_LIMIT:
        return value[:OTEL_CONTENT_LIMIT]
    return value


def _attributes(values: Mapping[str, object]) -> dict[str, str | bool | int | float]:
    cleaned: dict[str, str | bool | int | float] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, str | bool | int | float):
            cleaned[key] = value
        else:
            cleaned[key] = str(value)
    return cleaned


class TraceContext:
    """Serializable handle on a parent span context."""

    def __init__(self, carrier: Mapping[str, str] | None = None) -> None:
        self._carrier: dict[str, str] | None = dict(carrier) if carrier else None

    @classmethod
    def capture_current(cls) -> TraceContext:
        carrier: dict[str, str] = {}
        propagate.inject(carrier)
        return cls(carrier)

    @classmethod
    def from_carrier(cls, carrier: Mapping[str, str] | None) -> TraceContext:
        return cls(carrier)

    @property
    def carrier(self) -> dict[str, str] | None:
        return dict(self._carrier) if self._carrier is not None else None

    def __bool__(self) -> bool:
        return self._carrier is not None

    @contextmanager
    def start_span(self, name: str, **attributes: object) -> Iterator[trace.Span]:
        """Open ``name`` as a child of the carried context (or of the current one)."""
        span_name = name if name in SPAN_NAMES else _FALLBACK_SPAN_NAME
        parent = propagate.extract(self._carrier) if self._carrier is not None else None
        tracer = trace.get_tracer(_TRACER_NAME)
        with tracer.start_as_current_span(
            span_name,
            context=parent,
            attributes=_attributes(attributes),
        ) as span:
            yield span

    def user_message_span(self, content: str) -> AbstractContextManager[trace.Span]:
        if not content:
            return self.start_span("user_message", content="non-text-input")
        return self.start_span(
            "user_message",
            role="user",
            content=truncate_content(content),
            message_type="user_input",
        )

    def llm_request_span(self, model: str, provider: str) -> AbstractContextManager[trace.Span]:
        return self.start_span("llm_request", model=model, provider=provider)

    def assistant_message_span(self) -> AbstractContextManager[trace.Span]:
        return self.start_span(
            "assistant_msg", role="assistant", message_type="assistant_response"
        )

    def tool_call_span(self, tool_name: str, args: str) -> AbstractContextManager[trace.Span]:
        return self.start_span(
            "tool_call", tool=tool_name, args=truncate_content(args), call_type="function_call"
        )

    def exec_cmd_span(self, cmd: str) -> AbstractContextManager[trace.Span]:
        return self.start_span("exec_cmd", cmd=cmd)

    def function_call_output_span(self, call_id: str) -> AbstractContextManager[trace.Span]:
        return self.start_span(
            "function_call_output", call_id=call_id, call_type="function_output"
        )


def record_token_usage(usage: TokenUsage, span: trace.Span | None = None) -> None:
    """Attach token counts to ``span`` (default: the current span)."""
    target = span if span is not None else trace.get_current_span()
    if not target.is_recording():
        return
    target.set_attributes(
        _attributes(
            {
                "prompt_tokens": usage.input_tokens,
                "completion_tokens": usage.output_tokens,
                "total_tokens": usage.total_tokens,
                "cached_tokens": usage.cached_input_tokens,
                "reasoning_tokens": usage.reasoning_output_tokens,
            }
        )
    )


__all__ = [
    "OTEL_CONTENT_LIMIT",
    "SPAN_NAMES",
    "SpanName",
    "TraceContext",
    "record_token_usage",
    "truncate_content",
]
