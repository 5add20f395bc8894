"""
VoiceSnap Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the HTTP layer and the parser.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by routes, dependencies, middleware and the response parser.

The generation core itself does not raise across its boundary: it returns a
`ClassifiedError` value (see services/error_classifier.py). Only the HTTP
layer lifts that value into `GenerationFailedError` so the handlers in
main.py can render it.

Exception Hierarchy:
    VoiceSnapError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── GenerationFailedError    → status derived from ErrorKind
    └── ResponseParseError       → never reaches HTTP (converted to PARSE_ERROR)
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from voicesnap.services.error_classifier import ClassifiedError


class VoiceSnapError(Exception):
    """
    Base exception for all VoiceSnap application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VoiceSnapError):
    """
    Raised when client input fails validation.

    When:    Missing transcript, non-string input, transcript too long,
             missing question, unsupported target language.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "Transcript too long. Maximum 100000 characters allowed.",
            "code": "VALIDATION_ERROR",
            "retryable": false
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(VoiceSnapError):
    """
    Raised when the X-API-Key header is missing or does not match.

    HTTP:    401 Unauthorized

    The message is identical for every failure mode (missing header, unset
    server key, wrong key) so the response reveals nothing about which check
    failed.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Unauthorized - Invalid API key", context=context)


class GenerationFailedError(VoiceSnapError):
    """
    Carries a `ClassifiedError` from the core to the HTTP exception handler.

    What:    The route-level wrapper around a failed operation outcome.
    When:    A TranscriptService operation returned a ClassifiedError.
    HTTP:    429 / 503 / 504 / 500 depending on `classified.kind`.
    """

    def __init__(
        self,
        classified: "ClassifiedError",
        operation: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["kind"] = classified.kind.value
        if operation:
            ctx["operation"] = operation
        if classified.upstream_status is not None:
            ctx["upstream_status"] = classified.upstream_status
        super().__init__(message=classified.message, context=ctx)
        self.classified = classified
        self.operation = operation


class ResponseParseError(VoiceSnapError, ValueError):
    """
    Raised by the response unwrapper when generated text is not valid JSON.

    Converted into a PARSE_ERROR ClassifiedError by `parse_and_validate`;
    the raw text is kept in context for server-side debugging only.
    """

    def __init__(
        self,
        message: str = "Failed to parse response as JSON",
        raw_text: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["raw_length"] = len(raw_text)
        super().__init__(message=message, context=ctx)
        self.raw_text = raw_text
