"""
VoiceSnap Backend — Error Taxonomy & Classifier
=================================================

What:  Maps raw upstream/transport failures to a small, stable error taxonomy.
How:   Pure functions over the observable fields of an exception: an HTTP-ish
       status (`status_code`, integer `code`, or `status`), the exception type
       and errno, and the message text.
Who:   Used by InvocationClient (retry decisions + terminal classification)
       and by the response parser / transcript service (PARSE_ERROR,
       SCHEMA_ERROR, INVALID_RESPONSE).

Taxonomy:
    ┌──────────────────────┬───────────┬──────────────────────────────────┐
    │ Kind                 │ Retryable │ Trigger                          │
    ├──────────────────────┼───────────┼──────────────────────────────────┤
    │ RATE_LIMITED         │ yes       │ upstream 429                     │
    │ AUTH_FAILED          │ no        │ upstream 401 / 403               │
    │ SERVICE_UNAVAILABLE  │ yes       │ upstream >= 500 (except 504)     │
    │ TIMEOUT              │ yes       │ transport timeout, upstream 504  │
    │ INVALID_RESPONSE     │ no        │ malformed success envelope       │
    │ NO_TEXT_CONTENT      │ no        │ envelope without text units      │
    │ PARSE_ERROR          │ no        │ generated text is not JSON       │
    │ SCHEMA_ERROR         │ no        │ JSON does not match the shape    │
    │ UNKNOWN_ERROR        │ no        │ anything else                    │
    └──────────────────────┴───────────┴──────────────────────────────────┘

SERVICE_UNAVAILABLE is retried inside the invocation loop; once surfaced to
a client its `retryable=True` is advisory (the client may resubmit).
"""

import asyncio
import errno
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# errno values that indicate a transient transport failure
_TRANSIENT_ERRNOS = frozenset({errno.ECONNRESET, errno.ETIMEDOUT})

# Node/libuv-style string codes some transports set on `code`
_TRANSIENT_CODES = frozenset({"ECONNRESET", "ETIMEDOUT"})

_TIMEOUT_TYPES = (TimeoutError, asyncio.TimeoutError)

# Gateway timeout; google.api_core raises DeadlineExceeded with this code
_DEADLINE_STATUS = 504


class ErrorKind(str, Enum):
    """Stable, wire-safe error kinds."""

    RATE_LIMITED = "RATE_LIMITED"
    AUTH_FAILED = "AUTH_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NO_TEXT_CONTENT = "NO_TEXT_CONTENT"
    PARSE_ERROR = "PARSE_ERROR"
    SCHEMA_ERROR = "SCHEMA_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass(frozen=True)
class ClassifiedError:
    """
    The only error value that crosses the core's boundary.

    Attributes:
        kind:             Stable error kind (see ErrorKind)
        message:          Human-readable, safe to return to clients
        retryable:        Whether resubmitting may succeed
        upstream_status:  Status reported by the generation service, if any
    """

    kind: ErrorKind
    message: str
    retryable: bool
    upstream_status: Optional[int] = None


def upstream_status(raw_error: BaseException) -> Optional[int]:
    """
    Extract the upstream status carried by a raw failure, if any.

    Checks `status_code` (HTTP client style), an integer `code`
    (google.api_core style) and `status`, in that order. Booleans and
    non-integer values are ignored.
    """
    for attr in ("status_code", "code", "status"):
        value = getattr(raw_error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def is_timeout(raw_error: BaseException) -> bool:
    """True when the failure signals a timeout (type, 504, errno, code or message)."""
    if isinstance(raw_error, _TIMEOUT_TYPES):
        return True
    if upstream_status(raw_error) == _DEADLINE_STATUS:
        return True
    if getattr(raw_error, "errno", None) == errno.ETIMEDOUT:
        return True
    if getattr(raw_error, "code", None) == "ETIMEDOUT":
        return True
    return "timeout" in str(raw_error).lower()


def is_retryable(raw_error: BaseException) -> bool:
    """
    Decide whether a raw failure is worth another attempt.

    Retryable:
        - upstream status 429 or >= 500
        - connection-reset / timeout transport errors, by errno or by
          string `code` ("ECONNRESET", "ETIMEDOUT")
        - a message containing "timeout"
    Everything else (authentication, bad requests, programming errors) is not.
    """
    status = upstream_status(raw_error)
    if status is not None and (status == 429 or status >= 500):
        return True
    if isinstance(raw_error, ConnectionResetError):
        return True
    if getattr(raw_error, "errno", None) in _TRANSIENT_ERRNOS:
        return True
    if getattr(raw_error, "code", None) in _TRANSIENT_CODES:
        return True
    return is_timeout(raw_error)


def classify_failure(raw_error: BaseException) -> ClassifiedError:
    """
    Terminal classification of the last observed raw failure.

    Called once, after the retry loop stops. Its result supersedes any
    provisional retry decision made during the loop.
    """
    status = upstream_status(raw_error)

    if status == 429:
        return ClassifiedError(
            kind=ErrorKind.RATE_LIMITED,
            message="The AI service is rate limiting requests. Please try again shortly.",
            retryable=True,
            upstream_status=status,
        )
    if status in (401, 403):
        return ClassifiedError(
            kind=ErrorKind.AUTH_FAILED,
            message="The AI service rejected the server's credentials.",
            retryable=False,
            upstream_status=status,
        )
    if status is not None and status >= 500 and status != _DEADLINE_STATUS:
        return ClassifiedError(
            kind=ErrorKind.SERVICE_UNAVAILABLE,
            message="The AI service is temporarily unavailable. Please try again later.",
            retryable=True,
            upstream_status=status,
        )
    if is_timeout(raw_error):
        return ClassifiedError(
            kind=ErrorKind.TIMEOUT,
            message="The AI service took too long to respond. Please try again.",
            retryable=True,
            upstream_status=status,
        )
    return ClassifiedError(
        kind=ErrorKind.UNKNOWN_ERROR,
        message="An unexpected error occurred while generating content.",
        retryable=False,
        upstream_status=status,
    )
