"""
Structured logging for the SiHuni API.

Every entry is a JSON object (or a pretty console line in development) with
``timestamp``, ``level``, ``service`` and, inside a request, ``trace_id``,
``request_id`` and ``user_id``.

Loggers come from ``get_logger(__name__)`` and take snake_case event names
plus keyword fields::

    logger.info("ai_orchestrator_attempt", credential="primary", attempt=0)

Provider and store keys are masked by ``redact_secrets`` before rendering.
"""
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

SERVICE_NAME = "sihuni_api"

SECRET_FIELDS = frozenset({
    "api_key",
    "x-goog-api-key",
    "gemini_api_key",
    "gemini_api_key_fallback",
    "supabase_service_key",
})
REDACTED = "***"


def add_request_context(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Attach the request context and service name to each entry."""
    for field, var in (
        ("trace_id", trace_id_var),
        ("request_id", request_id_var),
        ("user_id", user_id_var),
    ):
        value = var.get()
        if value:
            event_dict[field] = value

    event_dict["service"] = SERVICE_NAME
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def redact_secrets(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for field in list(event_dict):
        if field.lower() in SECRET_FIELDS and event_dict[field]:
            event_dict[field] = REDACTED
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    service_name: Optional[str] = None,
    json_output: bool = True,
) -> None:
    """
    Configure structlog on top of the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        service_name: Overrides SERVICE_NAME when given
        json_output: JSON lines when True, console renderer otherwise
    """
    global SERVICE_NAME
    if service_name:
        SERVICE_NAME = service_name

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_context,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def configure_logging_from_env() -> None:
    """LOG_LEVEL (default INFO) and LOG_JSON (default true; console output otherwise)."""
    configure_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_output=os.getenv("LOG_JSON", "true").lower() == "true",
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(
    trace_id: Optional[str],
    request_id: Optional[str],
    user_id: Optional[str] = None,
) -> None:
    trace_id_var.set(trace_id)
    request_id_var.set(request_id)
    user_id_var.set(user_id)


def clear_request_context() -> None:
    bind_request_context(None, None, None)


def set_trace_id(trace_id: Optional[str]) -> None:
    trace_id_var.set(trace_id)


def get_trace_id() -> Optional[str]:
    return trace_id_var.get()


def set_request_id(request_id: Optional[str]) -> None:
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def set_user_id(user_id: Optional[str]) -> None:
    """Routes call this when the body names the user (chat ``userId``)."""
    user_id_var.set(user_id)


def get_user_id() -> Optional[str]:
    return user_id_var.get()


def generate_request_id() -> str:
    return str(uuid.uuid4())


def generate_trace_id() -> str:
    """Used when the caller sent no trace id and no span is active."""
    return str(uuid.uuid4())
