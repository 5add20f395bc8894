"""
VoiceSnap Backend — Transcript Service (Operation Orchestrator)
=================================================================

What:  The downstream boundary of the generation core: one coroutine per
       logical operation (summary, flashcards, quiz, translate, ...).
How:   input checks → sanitize → render prompt → InvocationClient.invoke
       → (structured operations) unwrap + validate.
Who:   Route handlers in routes/transcripts.py.

Outcome contract:
    Every operation returns either its success value (a string, or the
    parsed and validated JSON value) or a ClassifiedError. Input problems the
    client can fix (missing transcript, unsupported language) are raised as
    ValidationError before any upstream call is made.
"""

import logging
from typing import Any, Optional, Union

from voicesnap.exceptions import ValidationError
from voicesnap.services.error_classifier import ClassifiedError
from voicesnap.services.invocation_client import GenerationRequest, InvocationClient
from voicesnap.services.prompts import OPERATIONS, SUPPORTED_LANGUAGES, match_language, render
from voicesnap.services.response_parser import parse_and_validate
from voicesnap.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

OperationOutcome = Union[str, Any, ClassifiedError]


class TranscriptService:
    """
    Runs transcript operations against an InvocationClient.

    Args:
        client:                The invocation client (explicit dependency).
        max_transcript_length: Longest accepted transcript, in characters.
        max_question_length:   Chat questions are cut to this length.
    """

    def __init__(
        self,
        client: InvocationClient,
        max_transcript_length: int = 100_000,
        max_question_length: int = 500,
    ):
        self.client = client
        self.max_transcript_length = max_transcript_length
        self.max_question_length = max_question_length

    # ── Input preparation ────────────────────────────────────────────────

    def prepare_transcript(self, transcript: Any, field: str = "transcript") -> str:
        """
        Check a client-supplied transcript and return its sanitized form.

        Raises:
            ValidationError: missing, not a string, or longer than the limit.
        """
        label = field.capitalize()
        if not transcript:
            raise ValidationError(f"{label} is required", field=field)
        if not isinstance(transcript, str):
            raise ValidationError(f"{label} must be a string", field=field)
        if len(transcript) > self.max_transcript_length:
            raise ValidationError(
                f"{label} too long. Maximum {self.max_transcript_length} characters allowed.",
                field=field,
                context={"length": len(transcript)},
            )
        return sanitize(transcript)

    def prepare_text(self, text: Any) -> str:
        """Translation input: required string, truncated (not rejected) when long."""
        if not text or not isinstance(text, str):
            raise ValidationError("Text is required", field="text")
        return sanitize(text[:self.max_transcript_length])

    def prepare_question(self, question: Any) -> str:
        if not question or not isinstance(question, str):
            raise ValidationError("Question is required", field="question")
        return sanitize(question[:self.max_question_length])

    @staticmethod
    def resolve_language(target_language: Any) -> str:
        if not target_language or not isinstance(target_language, str):
            raise ValidationError("Target language is required", field="targetLanguage")
        language = match_language(target_language)
        if language is None:
            raise ValidationError(
                "Unsupported language. Supported languages: " + ", ".join(SUPPORTED_LANGUAGES),
                field="targetLanguage",
            )
        return language

    # ── Core runner ──────────────────────────────────────────────────────

    async def run(self, name: str, **fields: str) -> OperationOutcome:
        """
        Execute operation `name` with already-sanitized template fields.

        Returns:
            Generated text, a validated structured value, or ClassifiedError.
        """
        operation = OPERATIONS[name]
        request = GenerationRequest(
            prompt_text=render(operation, **fields),
            max_output_tokens=operation.max_tokens,
        )

        result = await self.client.invoke(request)
        if isinstance(result, ClassifiedError):
            return result
        if operation.shape is None:
            return result.text

        outcome = parse_and_validate(result.text, operation.shape)
        if isinstance(outcome, ClassifiedError):
            return outcome
        return outcome.parsed_value

    # ── Operations ───────────────────────────────────────────────────────

    async def summary(self, transcript: str) -> OperationOutcome:
        return await self.run("summary", transcript=transcript)

    async def bullets(self, transcript: str) -> OperationOutcome:
        return await self.run("bullets", transcript=transcript)

    async def notes(self, transcript: str) -> OperationOutcome:
        return await self.run("notes", transcript=transcript)

    async def flashcards(self, transcript: str) -> OperationOutcome:
        return await self.run("flashcards", transcript=transcript)

    async def quiz(self, transcript: str) -> OperationOutcome:
        return await self.run("quiz", transcript=transcript)

    async def action_items(self, transcript: str) -> OperationOutcome:
        return await self.run("action-items", transcript=transcript)

    async def highlights(self, transcript: str) -> OperationOutcome:
        return await self.run("highlights", transcript=transcript)

    async def chat(self, transcript: str, question: str) -> OperationOutcome:
        return await self.run("chat", transcript=transcript, question=question)

    async def paraphrase(self, transcript: str) -> OperationOutcome:
        return await self.run("paraphrase", transcript=transcript)

    async def translate(self, text: str, target_language: str) -> OperationOutcome:
        return await self.run("translate", text=text, language=target_language)

    async def faq(self, transcript: str) -> OperationOutcome:
        return await self.run("faq", transcript=transcript)

    async def mindmap(self, transcript: str) -> OperationOutcome:
        return await self.run("mindmap", transcript=transcript)

    async def punctuation(self, transcript: str) -> OperationOutcome:
        return await self.run("punctuation", transcript=transcript)

    async def formal(self, transcript: str) -> OperationOutcome:
        return await self.run("formal", transcript=transcript)

    async def casual(self, transcript: str) -> OperationOutcome:
        return await self.run("casual", transcript=transcript)


def describe(outcome: Optional[OperationOutcome]) -> str:
    """Short log-safe description of an outcome (never includes content)."""
    if isinstance(outcome, ClassifiedError):
        return f"error:{outcome.kind.value}"
    if isinstance(outcome, str):
        return f"text:{len(outcome)} chars"
    if isinstance(outcome, (list, dict)):
        return f"{type(outcome).__name__}:{len(outcome)} items"
    return type(outcome).__name__
