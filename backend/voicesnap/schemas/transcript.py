"""
VoiceSnap Backend — Pydantic Schemas (API Contracts)
======================================================

What:  Request/response models for the HTTP API.
How:   FastAPI uses them for body parsing and OpenAPI docs.

Request fields are typed `Any`: presence, type and length checks live in
TranscriptService, which raises ValidationError with its own 400 messages.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TranscriptRequest(BaseModel):
    """Body for every transcript operation except chat and translate."""
    model_config = ConfigDict(extra="ignore")

    transcript: Any = Field(default=None, description="Transcript text (max 100,000 chars)")


class ChatRequest(TranscriptRequest):
    question: Any = Field(default=None, description="Question about the transcript (max 500 chars)")


class TranslateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    text: Any = Field(default=None, description="Text to translate")
    target_language: Any = Field(
        default=None,
        alias="targetLanguage",
        description="One of the supported language names, e.g. 'Spanish'",
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": "Question 0 has invalid 'correctIndex'",
            "code": "SCHEMA_ERROR",
            "retryable": false,
            "request_id": "1f0c2a9b"
        }
    """
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Stable machine-readable error kind")
    retryable: bool = Field(default=False, description="Whether resubmitting may succeed")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET / and GET /health."""
    status: str = Field(description="Overall service status: ok or degraded")
    message: str = Field(default="VoiceSnap API is running")
    version: str = Field(description="Application version")
    gemini: str = Field(description="Gemini API status: available, unavailable")
    timestamp: str = Field(description="Current server time (ISO 8601, UTC)")
    uptime_seconds: float = Field(description="Seconds since service started")
