"""
Error taxonomy and failure classification for generative-AI calls.

``classify_error`` is the single place where provider failures are sorted
into retry classes. It only looks at a status code (when the error carries
one) and at substrings of the message, so it works for ``ProviderError``,
httpx status errors, and plain exceptions alike.
"""
from enum import Enum
from typing import Optional

CAPACITY_STATUS_CODES = {429, 403}
TRANSIENT_STATUS_CODES = {500, 503}

CAPACITY_MARKERS = ("capacity", "quota", "rate limit", "resource_exhausted")
TRANSIENT_MARKERS = ("timeout", "timed out", "unavailable", "overloaded")

BUSY_MESSAGE = "Layanan AI sedang sibuk, silakan coba lagi."


class ErrorClass(str, Enum):
    """Retry classes for provider failures."""

    CAPACITY = "capacity"
    TRANSIENT = "transient"
    NON_RETRYABLE = "non_retryable"


class ConfigurationError(Exception):
    """Raised at startup when no provider credential is configured."""


class ProviderError(Exception):
    """A failed call to the generative-text provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def error_class(self) -> ErrorClass:
        return classify_error(self)


class InvalidResponseError(Exception):
    """Raised when provider output is not the JSON shape an agent expects."""

    def __init__(self, agent: str, message: str, raw_output: Optional[str] = None):
        super().__init__(message)
        self.agent = agent
        self.raw_output = raw_output


def error_status(err: BaseException) -> Optional[int]:
    """Best-effort HTTP status carried by an error, or None."""
    status = getattr(err, "status_code", None)
    if status is None:
        status = getattr(err, "status", None)
    if status is None:
        response = getattr(err, "response", None)
        status = getattr(response, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def classify_error(err: BaseException) -> ErrorClass:
    """
    Sort an error into a retry class.

    Capacity is checked before transient: a message mentioning "capacity"
    is always capacity-class even though servers also use it for overload.
    """
    status = error_status(err)
    message = str(err).lower()

    if status in CAPACITY_STATUS_CODES or any(m in message for m in CAPACITY_MARKERS):
        return ErrorClass.CAPACITY
    if status in TRANSIENT_STATUS_CODES or any(m in message for m in TRANSIENT_MARKERS):
        return ErrorClass.TRANSIENT
    return ErrorClass.NON_RETRYABLE


def http_status_for(err: BaseException) -> int:
    """HTTP status the API layer should answer with for a final AI error."""
    if error_status(err) == 401:
        return 401
    if classify_error(err) in (ErrorClass.CAPACITY, ErrorClass.TRANSIENT):
        return 503
    return 500


def user_message_for(err: BaseException) -> str:
    status = http_status_for(err)
    if status == 503:
        return BUSY_MESSAGE
    if status == 401:
        return "Kunci API layanan AI tidak valid."
    return "Failed to process your request"
