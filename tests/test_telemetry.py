"""Tests for halyard.core.telemetry and halyard.core.tracing."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import NoOpTracerProvider

from halyard.config import TelemetryConfig
from halyard.core import telemetry
from halyard.core.telemetry import (
    JsonFileSpanExporter,
    get_tracer,
    init_tracing,
    init_tracing_from_config,
    shutdown_tracing,
)
from halyard.core.tracing import (
    OTEL_CONTENT_LIMIT,
    TraceContext,
    record_token_usage,
    truncate_content,
)
from halyard.models.events import TokenUsage


@pytest.fixture
def spans(monkeypatch: pytest.MonkeyPatch) -> InMemorySpanExporter:
    """Route ``trace.get_tracer`` to an in-memory provider for one test."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(
        "halyard.core.tracing.trace.get_tracer",
        lambda name, *args, **kwargs: provider.get_tracer(name),
    )
    return exporter


class TestInitTracing:
    def setup_method(self) -> None:
        telemetry._tracer_provider = None

    def test_no_target_returns_noop(self) -> None:
        assert isinstance(init_tracing(target=None), NoOpTracerProvider)

    def test_empty_target_returns_noop(self) -> None:
        assert isinstance(init_tracing(target=""), NoOpTracerProvider)

    def test_otlp_target_returns_tracer_provider(self) -> None:
        with patch("halyard.core.telemetry.BatchSpanProcessor"):
            provider = init_tracing(
                service_name="test-svc", env="test", target="localhost:4317"
            )

        assert isinstance(provider, TracerProvider)
        attrs = dict(provider.resource.attributes)
        assert attrs["service.name"] == "test-svc"
        assert attrs["deployment.environment"] == "test"

    def test_exporter_failure_still_returns_provider(self) -> None:
        with patch(
            "halyard.core.telemetry.BatchSpanProcessor",
            side_effect=ImportError("no grpc"),
        ):
            provider = init_tracing(target="localhost:4317")

        assert isinstance(provider, TracerProvider)

    def test_file_target_uses_json_exporter(self, tmp_path: Path) -> None:
        with patch("halyard.core.telemetry.SimpleSpanProcessor") as processor:
            init_tracing(target=f"file://{tmp_path / 'spans.jsonl'}")

        (exporter,), _ = processor.call_args
        assert isinstance(exporter, JsonFileSpanExporter)
        assert exporter.path == tmp_path / "spans.jsonl"
        exporter.shutdown()

    def test_disabled_config_ignores_target(self) -> None:
        provider = init_tracing_from_config(TelemetryConfig(enabled=False, target="stdout"))
        assert isinstance(provider, NoOpTracerProvider)


class TestShutdownTracing:
    def setup_method(self) -> None:
        telemetry._tracer_provider = None

    def test_shutdown_without_init(self) -> None:
        shutdown_tracing()

    def test_shutdown_noop_provider(self) -> None:
        init_tracing(target=None)
        shutdown_tracing()

    def test_shutdown_real_provider(self) -> None:
        with patch("halyard.core.telemetry.BatchSpanProcessor"):
            init_tracing(target="localhost:4317")
        shutdown_tracing()


def test_get_tracer_returns_tracer() -> None:
    assert get_tracer("test-module") is not None


def test_json_file_exporter_writes_one_line_per_span(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "spans.jsonl"
    exporter = JsonFileSpanExporter(path)
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer = provider.get_tracer("test")

    with tracer.start_as_current_span("user_message"):
        with tracer.start_as_current_span("llm_request"):
            pass
    provider.shutdown()

    names = [json.loads(line)["name"] for line in path.read_text(encoding="utf-8").splitlines()]
    assert names == ["llm_request", "user_message"]


def test_truncate_content() -> None:
    assert truncate_content("short") == "short"
    assert len(truncate_content("x" * (OTEL_CONTENT_LIMIT + 10))) == OTEL_CONTENT_LIMIT


class TestTraceContext:
    def test_empty_without_active_span(self) -> None:
        context = TraceContext.capture_current()
        assert not context
        assert context.carrier is None

    def test_carrier_parents_new_spans(self, spans: InMemorySpanExporter) -> None:
        with TraceContext().user_message_span("hello"):
            captured = TraceContext.capture_current()

        assert captured
        assert "traceparent" in captured.carrier

        restored = TraceContext.from_carrier(captured.carrier)
        with restored.llm_request_span("o3", "openai"):
            pass

        parent, child = spans.get_finished_spans()
        assert parent.name == "user_message"
        assert child.name == "llm_request"
        assert child.parent is not None
        assert child.parent.span_id == parent.context.span_id
        assert child.context.trace_id == parent.context.trace_id
        assert child.attributes["model"] == "o3"

    def test_unknown_span_name_falls_back(self, spans: InMemorySpanExporter) -> None:
        with TraceContext().start_span("made_up"):
            pass

        (span,) = spans.get_finished_spans()
        assert span.name == "span"

    def test_empty_user_message_marks_non_text(self, spans: InMemorySpanExporter) -> None:
        with TraceContext().user_message_span(""):
            pass

        (span,) = spans.get_finished_spans()
        assert span.attributes["content"] == "non-text-input"

    def test_tool_call_args_are_truncated(self, spans: InMemorySpanExporter) -> None:
        with TraceContext().tool_call_span("shell", "a" * (OTEL_CONTENT_LIMIT + 1)):
            pass

        (span,) = spans.get_finished_spans()
        assert span.attributes["tool"] == "shell"
        assert len(span.attributes["args"]) == OTEL_CONTENT_LIMIT

    def test_span_helpers_use_fixed_names(self, spans: InMemorySpanExporter) -> None:
        context = TraceContext()
        with context.assistant_message_span():
            pass
        with context.exec_cmd_span("ls -la"):
            pass
        with context.function_call_output_span("call_1"):
            pass

        assert [span.name for span in spans.get_finished_spans()] == [
            "assistant_msg",
            "exec_cmd",
            "function_call_output",
        ]


def test_record_token_usage_skips_missing_counts(spans: InMemorySpanExporter) -> None:
    usage = TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15)

    with TraceContext().llm_request_span("gpt-4.1", "openai"):
        record_token_usage(usage)

    (span,) = spans.get_finished_spans()
    assert span.attributes["total_tokens"] == 15
    assert "cached_tokens" not in span.attributes


def test_record_token_usage_without_span_is_noop() -> None:
    record_token_usage(TokenUsage(total_tokens=1))
