"""
Unit tests for OpenTelemetry distributed tracing.

Tests verify:
- Tracing configuration works with and without an OTLP endpoint
- Span helpers work inside and outside an active span
- start_span opens a current span carrying the given attributes
- Orchestrator runs are wrapped in their own span
"""
from unittest.mock import patch

import pytest

from app.core.tracing import (
    StatusCode,
    configure_tracing,
    get_trace_id_from_context,
    get_tracer,
    record_exception,
    set_span_attribute,
    set_span_status,
    shutdown_tracing,
    start_span,
)


class TestTracingConfiguration:

    def test_configure_tracing_defaults(self, monkeypatch):
        monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
        configure_tracing()
        assert get_tracer() is not None

    def test_configure_tracing_with_service_name_and_sampling(self):
        configure_tracing(service_name="test_service", sampling_rate=0.5)
        assert get_tracer() is not None

    def test_otlp_exporter_failure_is_not_fatal(self):
        with patch("app.core.tracing.OTLPSpanExporter", side_effect=RuntimeError("bad endpoint")):
            configure_tracing(otlp_endpoint="http://collector.invalid:4317")
        assert get_tracer() is not None

    def test_shutdown_tracing(self):
        configure_tracing()
        shutdown_tracing()


class TestSpanHelpers:

    def test_trace_id_inside_span(self):
        tracer = get_tracer()
        with tracer.start_as_current_span("test.operation"):
            trace_id = get_trace_id_from_context()
            set_span_attribute("ai.agent", "chat")
            set_span_status(StatusCode.OK)

        assert trace_id is not None
        assert len(trace_id) == 32

    def test_trace_id_without_span(self):
        assert get_trace_id_from_context() is None

    def test_record_exception_inside_span(self):
        tracer = get_tracer()
        with tracer.start_as_current_span("test.failure"):
            record_exception(ValueError("boom"))

    def test_helpers_without_span(self):
        set_span_attribute("key", "value")
        set_span_status(StatusCode.ERROR, "failed")
        record_exception(RuntimeError("no span"))


class TestStartSpan:

    def test_span_is_current_with_attributes(self):
        with start_span("ai.test", **{"ai.agent": "chat", "ai.skipped": None}) as span:
            assert get_trace_id_from_context() is not None
            assert span.is_recording()
            assert span.attributes["ai.agent"] == "chat"
            assert "ai.skipped" not in span.attributes

    def test_nested_spans_share_trace_id(self):
        with start_span("outer"):
            outer = get_trace_id_from_context()
            with start_span("inner"):
                assert get_trace_id_from_context() == outer


@pytest.mark.asyncio
async def test_orchestrator_run_has_active_span():
    from app.services.ai.credentials import PRIMARY, Credential, CredentialSet
    from app.services.ai.orchestration import AIRequestOrchestrator

    orchestrator = AIRequestOrchestrator(
        CredentialSet([Credential(PRIMARY, "k")]),
        client_factory=lambda credential: credential,
    )
    seen = []

    async def operation(client):
        seen.append(get_trace_id_from_context())
        return "ok"

    assert await orchestrator.run(operation) == "ok"
    assert seen[0] is not None
