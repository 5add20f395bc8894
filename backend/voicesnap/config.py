"""
VoiceSnap Backend — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, middleware, routes and services.
When:  Loaded once at module import time; validated before app starts.

Timeout ordering:
    The transport timeout (GENERATION_TIMEOUT_SECONDS) must stay strictly
    below the caller-side request timeout (REQUEST_TIMEOUT_SECONDS), so a
    classified TIMEOUT from the transport can still be reported to the client
    before the route deadline fires.

    The request deadline covers the whole retry sequence, while the transport
    timeout bounds each attempt. When every attempt runs into the transport
    timeout the sequence needs `worst_case_generation_seconds` (~184s with
    defaults); a shorter request deadline cuts the last attempts short and
    the client receives TIMEOUT.
    Startup logs a warning when that happens.
"""

from typing import List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set GEMINI_API_KEY and API_SECRET_KEY.
    """

    # ── Google Gemini ─────────────────────────────────────────────────────
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key used by the generation transport"
    )
    gemini_model: str = Field(default="gemini-1.5-flash")

    # Transport-side timeout for one upstream call, in seconds
    generation_timeout_seconds: float = Field(default=60.0, gt=0, le=600)

    # Caller-side deadline for a whole operation (all attempts + backoff)
    request_timeout_seconds: float = Field(default=90.0, gt=0, le=900)

    # ── API Authentication ────────────────────────────────────────────────
    # Compared against the X-API-Key request header
    api_secret_key: str = Field(default="")

    # ── Retry Configuration ───────────────────────────────────────────────
    # delay_ms = initial * 2^(attempt-1) + uniform(0, jitter)
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_initial_delay_ms: int = Field(default=1000, ge=0, le=30_000)
    retry_max_jitter_ms: int = Field(default=500, ge=0, le=10_000)

    # ── Input Limits ──────────────────────────────────────────────────────
    max_transcript_length: int = Field(default=100_000, ge=1_000, le=1_000_000)
    max_question_length: int = Field(default=500, ge=10, le=10_000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins; "*" allows all
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @property
    def worst_case_generation_seconds(self) -> float:
        """Every attempt hits the transport timeout and every backoff draws max jitter."""
        backoff_ms = sum(
            self.retry_initial_delay_ms * 2 ** (attempt - 1) + self.retry_max_jitter_ms
            for attempt in range(1, self.retry_max_attempts)
        )
        return self.retry_max_attempts * self.generation_timeout_seconds + backoff_ms / 1000

    @model_validator(mode="after")
    def validate_timeout_ordering(self) -> "Settings":
        """Transport timeout must be strictly shorter than the request deadline."""
        if self.generation_timeout_seconds >= self.request_timeout_seconds:
            raise ValueError(
                "generation_timeout_seconds "
                f"({self.generation_timeout_seconds}) must be less than "
                f"request_timeout_seconds ({self.request_timeout_seconds})"
            )
        return self

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-client sliding window
    rate_limit_requests: int = Field(default=100, ge=10, le=10000)
    rate_limit_window: int = Field(default=3600, ge=60, le=86400)  # seconds

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every missing value and raises one ValueError listing them.
        """
        errors = []
        if not self.gemini_api_key or self.gemini_api_key == "your_gemini_api_key_here":
            errors.append(
                "GEMINI_API_KEY is not set. "
                "Get a key at https://aistudio.google.com/app/apikey"
            )
        if not self.api_secret_key:
            errors.append(
                "API_SECRET_KEY is not set. Every /api request will be rejected with 401."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance: imported throughout the application
settings = Settings()
