"""OpenTelemetry tracing setup for halyard.

Exports spans to stdout, to a JSON-lines file (``file://<path>``), or to an
OTLP collector. When no target is configured, all tracing is a no-op.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.trace import NoOpTracerProvider

from halyard.config import TelemetryConfig

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | NoOpTracerProvider | None = None

_FILE_SCHEME = "file://"


class JsonFileSpanExporter(SpanExporter):
    """Append one JSON document per finished span to a local file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        lines = "".join(span.to_json(indent=None) + "\n" for span in spans)
        try:
            with self._lock:
                self._file.write(lines)
                self._file.flush()
        except (OSError, ValueError):
            logger.warning("Failed to write spans to %s", self._path, exc_info=True)
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        with self._lock:
            self._file.close()


def _otlp_exporter(endpoint: str, protocol: str) -> SpanExporter:
    if protocol == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(endpoint=endpoint)

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter as GrpcSpanExporter,
    )

    return GrpcSpanExporter(endpoint=endpoint, insecure=True)


def init_tracing(
    *,
    service_name: str = "halyard",
    env: str = "dev",
    target: str | None = None,
    protocol: str = "grpc",
    sample_rate: float = 1.0,
) -> TracerProvider | NoOpTracerProvider:
    """Initialize OpenTelemetry tracing for ``target``.

    If target is None or empty, returns a no-op provider so callers
    don't need conditional logic.
    """
    global _tracer_provider  # noqa: PLW0603

    if not target:
        provider = NoOpTracerProvider()
        trace.set_tracer_provider(provider)
        _tracer_provider = provider
        logger.info("Tracing disabled (no target configured)")
        return provider

    try:
        halyard_version = pkg_version("halyard")
    except PackageNotFoundError:
        halyard_version = "0.0.0"

    resource = Resource.create(
        {
            "service.name": service_name,
            "deployment.environment": env,
            "service.version": halyard_version,
        }
    )

    provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(sample_rate))

    try:
        if target == "stdout":
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        elif target.startswith(_FILE_SCHEME):
            exporter = JsonFileSpanExporter(target[len(_FILE_SCHEME) :])
            provider.add_span_processor(SimpleSpanProcessor(exporter))
        else:
            provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(target, protocol)))
        logger.info("Tracing enabled → %s (env=%s)", target, env)
    except Exception:
        logger.warning("Failed to initialize span exporter for %s", target, exc_info=True)

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def init_tracing_from_config(config: TelemetryConfig) -> TracerProvider | NoOpTracerProvider:
    return init_tracing(
        service_name=config.service_name,
        env=config.env,
        target=config.target if config.enabled else None,
        protocol=config.protocol,
        sample_rate=config.sample_rate,
    )


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the configured provider."""
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider."""
    if isinstance(_tracer_provider, TracerProvider):
        _tracer_provider.shutdown()


__all__ = [
    "JsonFileSpanExporter",
    "get_tracer",
    "init_tracing",
    "init_tracing_from_config",
    "shutdown_tracing",
]
