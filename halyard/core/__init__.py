"""Ambient runtime support: logging, tracing setup, span helpers."""

from halyard.core.logging import (
    CorrelationContext,
    CorrelationFilter,
    correlation_scope,
    get_correlation_context,
    setup_logging,
)
from halyard.core.telemetry import (
    get_tracer,
    init_tracing,
    init_tracing_from_config,
    shutdown_tracing,
)
from halyard.core.tracing import TraceContext, record_token_usage, truncate_content

__all__ = [
    "CorrelationContext",
    "CorrelationFilter",
    "TraceContext",
    "correlation_scope",
    "get_correlation_context",
    "get_tracer",
    "init_tracing",
    "init_tracing_from_config",
    "record_token_usage",
    "setup_logging",
    "shutdown_tracing",
    "truncate_content",
]
