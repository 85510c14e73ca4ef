"""
OpenTelemetry tracing.

Spans are opened around every HTTP request (``http.request``) and every AI
orchestrator run (``ai.orchestrator.run``); the FastAPI instrumentation adds
its own server spans. Spans are exported over OTLP/gRPC when an endpoint is
configured and only kept in-process otherwise.

Environment:
- OTEL_SERVICE_NAME (default: sihuni_api)
- OTEL_EXPORTER_OTLP_ENDPOINT, e.g. http://localhost:4317
- OTEL_TRACES_SAMPLER_ARG: ratio in [0, 1] (default: 1.0)
"""
import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.trace import Span, Status, StatusCode, Tracer

from .logging import SERVICE_NAME, get_logger

logger = get_logger(__name__)

_tracer: Optional[Tracer] = None
_tracer_provider: Optional[TracerProvider] = None


def _build_provider(service_name: str, sampling_rate: float) -> TracerProvider:
    resource = Resource.create({"service.name": service_name, "service.version": "1.0.0"})
    if sampling_rate < 1.0:
        return TracerProvider(resource=resource, sampler=ParentBased(TraceIdRatioBased(sampling_rate)))
    return TracerProvider(resource=resource)


def configure_tracing(
    service_name: Optional[str] = None,
    otlp_endpoint: Optional[str] = None,
    sampling_rate: Optional[float] = None,
) -> None:
    """
    Install a tracer provider. Arguments override the environment.

    An exporter that cannot be built is logged and skipped; tracing itself
    never prevents the service from starting.
    """
    global _tracer, _tracer_provider

    service_name = service_name or os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME)
    otlp_endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None
    if sampling_rate is None:
        sampling_rate = float(os.getenv("OTEL_TRACES_SAMPLER_ARG", "1.0"))

    _tracer_provider = _build_provider(service_name, sampling_rate)

    if otlp_endpoint:
        try:
            exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
            _tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
        except Exception as e:
            logger.warning(
                "tracing_otlp_configuration_failed",
                endpoint=otlp_endpoint,
                error=str(e),
                error_type=type(e).__name__,
            )
            otlp_endpoint = None

    trace.set_tracer_provider(_tracer_provider)
    _tracer = trace.get_tracer("sihuni")

    logger.info(
        "tracing_configured",
        service_name=service_name,
        sampling_rate=sampling_rate,
        otlp_endpoint=otlp_endpoint,
    )


def get_tracer() -> Tracer:
    if _tracer is None:
        configure_tracing()
    return _tracer


@contextmanager
def start_span(name: str, **attributes: Any) -> Iterator[Span]:
    """Open ``name`` as the current span, with ``attributes`` set up front."""
    with get_tracer().start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def get_trace_id_from_context() -> Optional[str]:
    """Hex trace id of the active span, or None outside a valid span."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    return None


def set_span_attribute(key: str, value: Any) -> None:
    trace.get_current_span().set_attribute(key, value)


def set_span_status(status_code: StatusCode, description: Optional[str] = None) -> None:
    trace.get_current_span().set_status(Status(status_code, description))


def record_exception(exception: BaseException) -> None:
    span = trace.get_current_span()
    span.record_exception(exception)
    span.set_status(Status(StatusCode.ERROR, str(exception)))


def instrument_fastapi(app) -> None:
    try:
        FastAPIInstrumentor.instrument_app(app)
    except Exception as e:
        logger.warning(
            "tracing_fastapi_instrumentation_failed",
            error=str(e),
            error_type=type(e).__name__,
        )


def shutdown_tracing() -> None:
    """Flush pending spans."""
    if _tracer_provider is None:
        return
    try:
        _tracer_provider.shutdown()
    except Exception as e:
        logger.warning("tracing_shutdown_failed", error=str(e), error_type=type(e).__name__)
