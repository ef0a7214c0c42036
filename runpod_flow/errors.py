# runpod_flow/errors.py
"""
Error taxonomy and classification for RunPod job calls.

Every failure that leaves the core is a ClassifiedError. The classify_*
functions are total: any HTTP outcome or exception maps to exactly one
ErrorKind, never an unclassified passthrough.
"""

import json
from dataclasses import dataclass, replace
from enum import Enum

import httpx
from pydantic import ValidationError


class ErrorKind(Enum):
    """Failure categories surfaced to callers."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    REMOTE_FAILURE = "remote_failure"
    MALFORMED = "malformed"
    NETWORK = "network"


@dataclass(frozen=True)
class ErrorContext:
    """Identifying context available at the call site."""

    model_id: str | None = None
    job_id: str | None = None
    status: str | None = None

    def merged(self, **kwargs) -> "ErrorContext":
        """Return a copy with the given non-None fields filled in."""
        updates = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **updates)


class ClassifiedError(Exception):
    """A failure mapped onto the ErrorKind taxonomy."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(message)

    def __str__(self) -> str:
        parts = [f"{self.kind.value}: {self.message}"]
        ctx = self.context
        details = [
            f"{name}={value}"
            for name, value in (
                ("model", ctx.model_id),
                ("job", ctx.job_id),
                ("status", ctx.status),
            )
            if value
        ]
        if details:
            parts.append(f"({', '.join(details)})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"ClassifiedError(kind={self.kind.name}, message={self.message!r}, context={self.context!r})"


_STATUS_KINDS = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
}


def kind_for_status(status_code: int) -> ErrorKind:
    """
    Map a non-2xx HTTP status code to an ErrorKind.

    401/403/404 map to their own kinds, 5xx counts as a network-level
    failure, and every other non-2xx code is a remote rejection.
    """
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if status_code >= 500:
        return ErrorKind.NETWORK
    return ErrorKind.REMOTE_FAILURE


def _response_message(response: httpx.Response) -> str:
    """Best-effort extraction of the remote's error text."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        body = None

    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])

    text = response.text.strip()
    if text:
        return text[:500]
    return response.reason_phrase or f"HTTP {response.status_code}"


def classify_response(
    response: httpx.Response, context: ErrorContext | None = None
) -> ClassifiedError:
    """
    Classify a non-2xx HTTP response.

    Args:
        response: The failed response
        context: Identifying context from the call site

    Returns:
        ClassifiedError carrying the remote's message and status code
    """
    kind = kind_for_status(response.status_code)
    message = f"HTTP {response.status_code}: {_response_message(response)}"
    return ClassifiedError(kind, message, context)


def classify_exception(
    exc: BaseException, context: ErrorContext | None = None
) -> ClassifiedError:
    """
    Classify an exception raised while talking to the remote.

    Args:
        exc: The raised exception
        context: Identifying context from the call site

    Returns:
        ClassifiedError (the same instance if exc was already classified)
    """
    if isinstance(exc, ClassifiedError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return ClassifiedError(
            ErrorKind.TIMEOUT, f"Request timed out: {exc}", context
        )
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_response(exc.response, context)
    if isinstance(exc, (httpx.TransportError, OSError)):
        return ClassifiedError(
            ErrorKind.NETWORK, f"Connection failed: {exc}", context
        )
    if isinstance(exc, (json.JSONDecodeError, ValidationError, UnicodeDecodeError)):
        return ClassifiedError(
            ErrorKind.MALFORMED, f"Unparseable response: {exc}", context
        )
    return ClassifiedError(ErrorKind.NETWORK, f"{type(exc).__name__}: {exc}", context)


def remote_failure(
    message: str | None, context: ErrorContext | None = None
) -> ClassifiedError:
    """Error for a job the remote reported as failed."""
    return ClassifiedError(
        ErrorKind.REMOTE_FAILURE, message or "Remote job failed", context
    )


def malformed(message: str, context: ErrorContext | None = None) -> ClassifiedError:
    """Error for a payload that parsed but has the wrong shape."""
    return ClassifiedError(ErrorKind.MALFORMED, message, context)


def timed_out(
    elapsed_s: float, timeout_s: float, context: ErrorContext | None = None
) -> ClassifiedError:
    """Error for a locally detected timeout breach."""
    return ClassifiedError(
        ErrorKind.TIMEOUT,
        f"Job did not finish within {timeout_s:g}s (elapsed {elapsed_s:.1f}s)",
        context,
    )
