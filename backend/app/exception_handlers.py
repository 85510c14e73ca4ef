"""
Global exception handlers.

Every error body has the shape ``{detail, status_code, trace_id}``. Routes
map the AI errors they expect themselves; ``ProviderError`` and
``ConfigurationError`` that escape a route are mapped here with the same
status rules (401 / 503 / 500) and user-facing messages.
"""
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .core.logging import get_logger, get_trace_id
from .core.metrics import record_http_request
from .core.tracing import StatusCode, get_trace_id_from_context, record_exception, set_span_status
from .services.ai.errors import ConfigurationError, ProviderError, http_status_for, user_message_for

logger = get_logger(__name__)


def _error_response(status_code: int, detail, trace_id: Optional[str]) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content={"detail": detail, "status_code": status_code, "trace_id": trace_id},
    )
    if trace_id:
        response.headers["X-Trace-ID"] = trace_id
    return response


def _current_trace_id() -> Optional[str]:
    return get_trace_id() or get_trace_id_from_context()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    duration = time.time() - getattr(request.state, "start_time", time.time())
    set_span_status(StatusCode.ERROR if exc.status_code >= 500 else StatusCode.OK, str(exc.detail))
    record_http_request(request.method, request.url.path, exc.status_code, duration)
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    return _error_response(exc.status_code, exc.detail, _current_trace_id())


async def ai_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        status_code, detail = 500, str(exc)
    else:
        status_code, detail = http_status_for(exc), user_message_for(exc)
    record_exception(exc)
    logger.error(
        "ai_exception",
        status_code=status_code,
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return _error_response(status_code, detail, _current_trace_id())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    record_exception(exc)
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return _error_response(500, "Internal server error", _current_trace_id())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(ProviderError, ai_exception_handler)
    app.add_exception_handler(ConfigurationError, ai_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
