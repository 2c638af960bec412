"""Structured logging setup with correlation context propagation.

Every record carries the session, turn, and tool-call identifiers of the
code that emitted it, plus the active OTel trace id, so rollout writer
warnings and stream decoding logs can be tied back to one session.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from opentelemetry import trace


@dataclass(frozen=True, slots=True)
class CorrelationContext:
    """Correlation identifiers for grouping related log records."""

    session_id: str | None = None
    turn_id: str | None = None
    call_id: str | None = None


_EMPTY_CONTEXT = CorrelationContext()
_CORRELATION_CONTEXT: contextvars.ContextVar[CorrelationContext | None] = contextvars.ContextVar(
    "halyard_correlation_context",
    default=None,
)


def get_correlation_context() -> CorrelationContext:
    """Return current correlation IDs for the active execution context.

    Reads from ``contextvars`` so tasks spawned inside a scope (such as the
    rollout writer) keep the identifiers of the scope that created them.
    """

    context = _CORRELATION_CONTEXT.get()
    if context is None:
        return _EMPTY_CONTEXT
    return context


def _current_otel_trace_id() -> str:
    """Extract the current OTel trace ID as a hex string, or empty."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return ""


class CorrelationFilter(logging.Filter):
    """Inject correlation fields into every ``LogRecord`` before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        context: CorrelationContext = get_correlation_context()
        record.session_id = context.session_id
        record.turn_id = context.turn_id
        record.call_id = context.call_id
        record.otel_trace_id = _current_otel_trace_id()
        return True


class _JsonFormatter(logging.Formatter):
    """Render logs as compact JSON for machine-readable ingestion."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object | None] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "session_id": getattr(record, "session_id", None),
            "turn_id": getattr(record, "turn_id", None),
            "call_id": getattr(record, "call_id", None),
            "trace_id": getattr(record, "otel_trace_id", None),
        }
        if record.exc_info is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def setup_logging(level: int | str = logging.INFO, json_output: bool = False) -> None:
    """Configure root logging once with correlation-aware handlers."""

    root_logger: logging.Logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.filters.clear()

    handler = logging.StreamHandler(stream=sys.stderr)
    if json_output:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s "
            "session_id=%(session_id)s turn_id=%(turn_id)s call_id=%(call_id)s "
            "trace_id=%(otel_trace_id)s "
            "%(message)s",
        )
    handler.setFormatter(formatter)

    correlation_filter = CorrelationFilter()
    handler.addFilter(correlation_filter)
    root_logger.addFilter(correlation_filter)
    root_logger.addHandler(handler)


@contextmanager
def correlation_scope(
    *,
    session_id: str | None = None,
    turn_id: str | None = None,
    call_id: str | None = None,
) -> Iterator[None]:
    """Temporarily apply correlation IDs to the current async execution context.

    Nested scopes inherit outer values unless explicitly overridden.
    """

    current: CorrelationContext = get_correlation_context()
    updated = CorrelationContext(
        session_id=current.session_id if session_id is None else session_id,
        turn_id=current.turn_id if turn_id is None else turn_id,
        call_id=current.call_id if call_id is None else call_id,
    )
    token: contextvars.Token[CorrelationContext | None] = _CORRELATION_CONTEXT.set(updated)
    try:
        yield
    finally:
        _CORRELATION_CONTEXT.reset(token)


__all__ = [
    "CorrelationContext",
    "CorrelationFilter",
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
]
