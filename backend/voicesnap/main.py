"""
VoiceSnap Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() wires the generation core (transport →
       invocation client → transcript service), middleware, exception
       handlers and routes, and returns a configured FastAPI instance.
Who:   uvicorn (uvicorn voicesnap.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌────────────┐ ┌────────┐ ┌─────────┐ │
    │  │ Security │→│ Rate Limit │→│ Req ID │→│ Logging │ │
    │  └──────────┘ └────────────┘ └────────┘ └─────────┘ │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────────────┐ ┌─────────────────────┐ │
    │  │ POST /api/<operation>  │ │ GET / , GET /health │ │
    │  └────────────────────────┘ └─────────────────────┘ │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ Auth→401 │ Generation→kind  │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from voicesnap import __version__
from voicesnap.config import settings
from voicesnap.exceptions import (
    AuthenticationError,
    GenerationFailedError,
    ValidationError,
    VoiceSnapError,
)
from voicesnap.middleware.logging import RequestLoggingMiddleware
from voicesnap.middleware.rate_limit import RateLimitMiddleware
from voicesnap.middleware.request_id import RequestIDMiddleware, request_id_var
from voicesnap.middleware.security_headers import SecurityHeadersMiddleware
from voicesnap.routes import health, transcripts
from voicesnap.services.error_classifier import ErrorKind
from voicesnap.services.gemini_service import GeminiTransport
from voicesnap.services.invocation_client import InvocationClient
from voicesnap.services.llm_base import GenerationTransport
from voicesnap.services.transcript_service import TranscriptService

logger = logging.getLogger(__name__)

# Wire status for each classified error kind; anything absent maps to 500
STATUS_BY_KIND = {
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, validate configuration, log readiness.
    Shutdown: log. The core holds no connections or files to release.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("VoiceSnap Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health reports degraded and /api answers 401 or a
        # classified AUTH_FAILED instead of the process exiting.
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    logger.info(
        "Model=%s, transport timeout=%.0fs, request timeout=%.0fs, max attempts=%d",
        settings.gemini_model,
        settings.generation_timeout_seconds,
        settings.request_timeout_seconds,
        settings.retry_max_attempts,
    )
    if settings.request_timeout_seconds < settings.worst_case_generation_seconds:
        logger.warning(
            "Request timeout %.0fs is shorter than the worst-case retry sequence (%.0fs); "
            "persistent upstream timeouts will surface as TIMEOUT before the last attempt",
            settings.request_timeout_seconds,
            settings.worst_case_generation_seconds,
        )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("VoiceSnap Backend shutting down...")
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, code: str, retryable: bool) -> dict:
    return {
        "error": message,
        "code": code,
        "retryable": retryable,
        "request_id": request_id_var.get("") or None,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the standard error body.

    Handler hierarchy:
        ValidationError         → 400 VALIDATION_ERROR
        RequestValidationError  → 400 VALIDATION_ERROR
        AuthenticationError     → 401 UNAUTHORIZED
        GenerationFailedError   → STATUS_BY_KIND[kind] (default 500)
        VoiceSnapError (base)   → 500 SERVICE_ERROR
        Exception (fallback)    → 500 SERVICE_ERROR, generic message only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body(exc.message, "VALIDATION_ERROR", False),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        # Malformed JSON or a non-object body
        logger.warning("[%s] Unparseable request body", request_id_var.get(""))
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request body", "VALIDATION_ERROR", False),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body(exc.message, "UNAUTHORIZED", False),
        )

    @app.exception_handler(GenerationFailedError)
    async def handle_generation_failed(request: Request, exc: GenerationFailedError):
        classified = exc.classified
        status_code = STATUS_BY_KIND.get(classified.kind, 500)
        logger.error(
            "[%s] %s failed: %s | Context: %s",
            request_id_var.get(""),
            exc.operation or "operation",
            classified.kind.value,
            exc.context,
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(classified.message, classified.kind.value, classified.retryable),
        )

    @app.exception_handler(VoiceSnapError)
    async def handle_app_error(request: Request, exc: VoiceSnapError):
        logger.error("[%s] Application error: %s | Context: %s",
                     request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body(exc.message, "SERVICE_ERROR", True),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace is logged server-side only, never returned."""
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "An unexpected error occurred. Please try again.", "SERVICE_ERROR", True
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_transcript_service(transport: GenerationTransport) -> TranscriptService:
    """Assemble the generation core from settings around a transport."""
    client = InvocationClient(
        transport=transport,
        model=settings.gemini_model,
        max_attempts=settings.retry_max_attempts,
        initial_delay_ms=settings.retry_initial_delay_ms,
        max_jitter_ms=settings.retry_max_jitter_ms,
    )
    return TranscriptService(
        client,
        max_transcript_length=settings.max_transcript_length,
        max_question_length=settings.max_question_length,
    )


def create_app(transport: Optional[GenerationTransport] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        transport: Upstream generation transport. Defaults to a
                   GeminiTransport built from settings; tests pass a double.
    """
    app = FastAPI(
        title="VoiceSnap API",
        description=(
            "Turns transcripts into summaries, notes, flashcards, quizzes, mind maps "
            "and rewrites using Google Gemini, with retries and validated JSON output."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if transport is None:
        transport = GeminiTransport(
            api_key=settings.gemini_api_key,
            default_model=settings.gemini_model,
            timeout_seconds=settings.generation_timeout_seconds,
        )
    app.state.transport = transport
    app.state.transcript_service = build_transcript_service(transport)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute:
    # SecurityHeaders → RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(transcripts.router)

    return app


app = create_app()
