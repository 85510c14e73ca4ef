"""
Request context middleware.

Each request gets a trace ID (X-Trace-ID, else X-Request-ID, else the active
OpenTelemetry span, else a new UUID) and a fresh request ID. Both, plus the
X-User-ID header when sent, are bound to the logging context for the
duration of the request and echoed back in the response headers.
"""
import time
from typing import Callable

from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import (
    bind_request_context,
    clear_request_context,
    generate_request_id,
    generate_trace_id,
    get_logger,
)
from .metrics import record_http_request
from .tracing import get_trace_id_from_context, record_exception, set_span_attribute, start_span

logger = get_logger(__name__)


def _as_uuid(hex_id: str) -> str:
    if len(hex_id) != 32:
        return hex_id
    return f"{hex_id[0:8]}-{hex_id[8:12]}-{hex_id[12:16]}-{hex_id[16:20]}-{hex_id[20:32]}"


def resolve_trace_id(request: Request) -> str:
    trace_id = request.headers.get("X-Trace-ID") or request.headers.get("X-Request-ID")
    if trace_id:
        return trace_id
    otel_trace_id = get_trace_id_from_context()
    return _as_uuid(otel_trace_id) if otel_trace_id else generate_trace_id()


class TraceIDMiddleware(BaseHTTPMiddleware):
    """Binds trace/request/user context, wraps the request in a span and records RED metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = resolve_trace_id(request)
        request_id = generate_request_id()
        user_id = request.headers.get("X-User-ID")
        bind_request_context(trace_id, request_id, user_id)

        method, path = request.method, request.url.path
        start_time = time.time()
        request.state.start_time = start_time

        with start_span("http.request", **{"http.method": method, "http.route": path, "user.id": user_id}):
            logger.info(
                "request_started",
                method=method,
                path=path,
                client_host=request.client.host if request.client else None,
            )

            try:
                response = await call_next(request)
            except HTTPException as exc:
                # The HTTPException handler records metrics for these
                set_span_attribute("http.status_code", exc.status_code)
                raise
            except Exception as e:
                elapsed = time.time() - start_time
                record_exception(e)
                set_span_attribute("http.status_code", 500)
                record_http_request(method, path, 500, elapsed)
                logger.error(
                    "request_failed",
                    method=method,
                    path=path,
                    error=str(e),
                    error_type=type(e).__name__,
                    latency_ms=int(elapsed * 1000),
                    exc_info=True,
                )
                raise
            else:
                elapsed = time.time() - start_time
                set_span_attribute("http.status_code", response.status_code)
                record_http_request(method, path, response.status_code, elapsed)
                logger.info(
                    "request_completed",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                    latency_ms=int(elapsed * 1000),
                )
                response.headers["X-Trace-ID"] = trace_id
                response.headers["X-Request-ID"] = request_id
                return response
            finally:
                clear_request_context()
