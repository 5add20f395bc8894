"""
VoiceSnap Backend — Transcript Operation Routes
=================================================

What:  POST /api/<operation> for every transcript operation.
How:   Each handler validates + sanitizes input through TranscriptService,
       runs the operation under the caller-side deadline, and returns
       {<result_key>: value}. A ClassifiedError outcome is raised as
       GenerationFailedError; main.py maps its kind to a status code.
Who:   Called by the VoiceSnap clients with an X-API-Key header.

Route Inventory:
    POST /api/summary        → {"summary": str}
    POST /api/bullets        → {"bullets": str}
    POST /api/notes          → {"notes": str}
    POST /api/flashcards     → {"flashcards": [...]}
    POST /api/quiz           → {"questions": [...]}
    POST /api/action-items   → {"actionItems": [...]}
    POST /api/highlights     → {"highlights": [...]}
    POST /api/chat           → {"answer": str}
    POST /api/paraphrase     → {"paraphrased": str}
    POST /api/translate      → {"translated": str}
    POST /api/faq            → {"faqs": [...]}
    POST /api/mindmap        → {"mindmap": {...}}
    POST /api/punctuation    → {"punctuated": str}
    POST /api/formal         → {"formal": str}
    POST /api/casual         → {"casual": str}
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import APIRouter, Depends, Request

from voicesnap.config import settings
from voicesnap.exceptions import GenerationFailedError
from voicesnap.middleware.auth import require_api_key
from voicesnap.middleware.request_id import request_id_var
from voicesnap.schemas.transcript import (
    ChatRequest,
    ErrorResponse,
    TranscriptRequest,
    TranslateRequest,
)
from voicesnap.services.error_classifier import ClassifiedError, ErrorKind
from voicesnap.services.transcript_service import TranscriptService, describe

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Transcripts"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        401: {"description": "Missing or invalid API key", "model": ErrorResponse},
        429: {"description": "Rate limited", "model": ErrorResponse},
        500: {"description": "Generation, parse or schema failure", "model": ErrorResponse},
        503: {"description": "AI service unavailable", "model": ErrorResponse},
        504: {"description": "AI service timed out", "model": ErrorResponse},
    },
)


def get_transcript_service(request: Request) -> TranscriptService:
    """Dependency: the service built by the app factory."""
    return request.app.state.transcript_service


async def execute(operation: str, call: Awaitable[Any]) -> Any:
    """
    Await an operation under the request deadline and lift failures.

    Raises:
        GenerationFailedError: the operation returned a ClassifiedError, or
            the deadline expired (TIMEOUT).
    """
    try:
        outcome = await asyncio.wait_for(call, timeout=settings.request_timeout_seconds)
    except asyncio.TimeoutError:
        outcome = ClassifiedError(
            kind=ErrorKind.TIMEOUT,
            message="The request timed out. Please try again.",
            retryable=True,
        )

    logger.info("[%s] %s → %s", request_id_var.get(""), operation, describe(outcome))
    if isinstance(outcome, ClassifiedError):
        raise GenerationFailedError(outcome, operation=operation)
    return outcome


def _transcript_endpoint(
    operation: str,
    result_key: str,
    method: Callable[[TranscriptService], Callable[[str], Awaitable[Any]]],
):
    async def endpoint(
        body: TranscriptRequest,
        service: TranscriptService = Depends(get_transcript_service),
    ) -> Dict[str, Any]:
        transcript = service.prepare_transcript(body.transcript)
        return {result_key: await execute(operation, method(service)(transcript))}

    endpoint.__name__ = operation.replace("-", "_")
    return endpoint


# (path, response key, service method) for single-transcript operations
_TRANSCRIPT_OPERATIONS = (
    ("summary", "summary", lambda s: s.summary),
    ("bullets", "bullets", lambda s: s.bullets),
    ("notes", "notes", lambda s: s.notes),
    ("flashcards", "flashcards", lambda s: s.flashcards),
    ("quiz", "questions", lambda s: s.quiz),
    ("action-items", "actionItems", lambda s: s.action_items),
    ("highlights", "highlights", lambda s: s.highlights),
    ("paraphrase", "paraphrased", lambda s: s.paraphrase),
    ("faq", "faqs", lambda s: s.faq),
    ("mindmap", "mindmap", lambda s: s.mindmap),
    ("punctuation", "punctuated", lambda s: s.punctuation),
    ("formal", "formal", lambda s: s.formal),
    ("casual", "casual", lambda s: s.casual),
)

for _operation, _key, _method in _TRANSCRIPT_OPERATIONS:
    router.add_api_route(
        f"/{_operation}",
        _transcript_endpoint(_operation, _key, _method),
        methods=["POST"],
        summary=f"Generate {_key} from a transcript",
    )


@router.post("/chat", summary="Ask a question about a transcript")
async def chat(
    body: ChatRequest,
    service: TranscriptService = Depends(get_transcript_service),
) -> Dict[str, Any]:
    transcript = service.prepare_transcript(body.transcript)
    question = service.prepare_question(body.question)
    return {"answer": await execute("chat", service.chat(transcript, question))}


@router.post("/translate", summary="Translate text to a supported language")
async def translate(
    body: TranslateRequest,
    service: TranscriptService = Depends(get_transcript_service),
) -> Dict[str, Any]:
    text = service.prepare_text(body.text)
    language = service.resolve_language(body.target_language)
    return {"translated": await execute("translate", service.translate(text, language))}
