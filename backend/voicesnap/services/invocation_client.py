"""
VoiceSnap Backend — Resilient Invocation Client
=================================================

What:  Performs one logical call to the generation service: retries transient
       failures with exponential backoff + jitter, validates the response
       envelope, and returns either generated text or a classified error.
How:   A tenacity AsyncRetrying loop around GenerationTransport.create_message,
       with a custom wait (see compute_backoff_ms) and the error classifier as
       the retry predicate.
Who:   Used by TranscriptService for every operation.

Retry Strategy:
    attempt 1 ──fail(retryable)──▶ sleep ~1.0–1.5s
    attempt 2 ──fail(retryable)──▶ sleep ~2.0–2.5s
    attempt 3 ──fail──────────────▶ terminal classification

    Worst-case total backoff: 1000 * (1 + 2) + 2 * 500 = 4000ms with the
    defaults. Transport time is bounded separately: three calls that each
    hit the 60s transport timeout take ~184s in total, past the default 90s
    request deadline. The route then cancels the loop mid-attempt and reports
    TIMEOUT (see Settings.worst_case_generation_seconds).

    Non-retryable failures (authentication, bad request, unknown) stop after
    the attempt that produced them. Malformed success envelopes are never
    retried: they are a contract violation, not a transient condition.

Result values:
    invoke() never raises for upstream problems. It returns GenerationResult
    on success and ClassifiedError otherwise. Task cancellation
    (asyncio.CancelledError) is not an upstream problem and propagates.
"""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from voicesnap.services.error_classifier import (
    ClassifiedError,
    ErrorKind,
    classify_failure,
    is_retryable,
)
from voicesnap.services.llm_base import GenerationTransport

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_DELAY_MS = 1000
MAX_JITTER_MS = 500


@dataclass(frozen=True)
class GenerationRequest:
    """One prompt plus its output token budget. Immutable, built per call."""

    prompt_text: str
    max_output_tokens: int

    def __post_init__(self) -> None:
        if not isinstance(self.prompt_text, str) or not self.prompt_text:
            raise ValueError("prompt_text must be a non-empty string")
        if (
            not isinstance(self.max_output_tokens, int)
            or isinstance(self.max_output_tokens, bool)
            or self.max_output_tokens <= 0
        ):
            raise ValueError("max_output_tokens must be a positive integer")


@dataclass(frozen=True)
class GenerationResult:
    """Text produced by one successful invocation."""

    text: str


InvocationOutcome = Union[GenerationResult, ClassifiedError]


def compute_backoff_ms(
    attempt: int,
    initial_delay_ms: float = INITIAL_DELAY_MS,
    max_jitter_ms: float = MAX_JITTER_MS,
    jitter: Callable[[float, float], float] = random.uniform,
) -> float:
    """
    Backoff delay after the given (1-indexed) failed attempt, in milliseconds.

        delay = initial_delay_ms * 2^(attempt-1) + uniform(0, max_jitter_ms)
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return initial_delay_ms * (2 ** (attempt - 1)) + jitter(0, max_jitter_ms)


def _field(obj: Any, name: str) -> Any:
    """Read `name` from a mapping or an attribute-style SDK object."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_text(envelope: Any) -> InvocationOutcome:
    """
    Validate a success envelope and pull out its text.

    The envelope must hold a non-empty list under `content`; at least one unit
    must have kind "text" and a non-empty string `text`. All text units are
    joined in order. Unknown fields are ignored.
    """
    content = _field(envelope, "content")
    if not isinstance(content, (list, tuple)) or not content:
        return ClassifiedError(
            kind=ErrorKind.INVALID_RESPONSE,
            message="The AI service returned an empty or malformed response.",
            retryable=False,
        )

    texts = []
    for unit in content:
        if _field(unit, "type") != "text":
            continue
        text = _field(unit, "text")
        if isinstance(text, str) and text:
            texts.append(text)

    if not texts:
        return ClassifiedError(
            kind=ErrorKind.NO_TEXT_CONTENT,
            message="The AI service response contained no text content.",
            retryable=False,
        )
    return GenerationResult(text="".join(texts))


class InvocationClient:
    """
    Orchestrates a single logical call to the generation service.

    Args:
        transport:         Upstream boundary (explicit dependency).
        model:             Model identifier sent with every request.
        max_attempts:      Physical attempts per invocation (default 3).
        initial_delay_ms:  Base backoff delay.
        max_jitter_ms:     Upper bound of the uniform jitter.
        sleep:             Async sleep used between attempts (injectable).

    The client holds no per-call state; concurrent invoke() calls are
    independent.
    """

    def __init__(
        self,
        transport: GenerationTransport,
        model: str,
        max_attempts: int = MAX_RETRIES,
        initial_delay_ms: float = INITIAL_DELAY_MS,
        max_jitter_ms: float = MAX_JITTER_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.transport = transport
        self.model = model
        self.max_attempts = max_attempts
        self.initial_delay_ms = initial_delay_ms
        self.max_jitter_ms = max_jitter_ms
        self._sleep = sleep

    def _wait(self, retry_state: RetryCallState) -> float:
        """tenacity wait strategy: backoff for the attempt that just failed, in seconds."""
        delay_ms = compute_backoff_ms(
            retry_state.attempt_number,
            self.initial_delay_ms,
            self.max_jitter_ms,
        )
        return delay_ms / 1000.0

    @staticmethod
    def _log_retry(call_id: str) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                "[%s] Generation attempt %d failed (%s); retrying in %.0fms",
                call_id,
                retry_state.attempt_number,
                type(exc).__name__ if exc else "unknown",
                delay * 1000,
            )

        return before_sleep

    async def invoke(self, request: GenerationRequest) -> InvocationOutcome:
        """
        Run one logical generation call.

        Returns:
            GenerationResult with the generated text, or a ClassifiedError.
        """
        call_id = str(uuid.uuid4())[:8]
        messages = [{"role": "user", "content": request.prompt_text}]

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(is_retryable),
            before_sleep=self._log_retry(call_id),
            sleep=self._sleep,
            reraise=True,
        )

        envelope: Optional[Any] = None
        try:
            async for attempt in retrying:
                with attempt:
                    envelope = await self.transport.create_message(
                        model=self.model,
                        max_tokens=request.max_output_tokens,
                        messages=messages,
                    )
        except Exception as e:
            classified = classify_failure(e)
            logger.error(
                "[%s] Generation failed after %d attempt(s): %s (%s, status=%s)",
                call_id,
                retrying.statistics.get("attempt_number", 1),
                classified.kind.value,
                type(e).__name__,
                classified.upstream_status,
            )
            return classified

        outcome = extract_text(envelope)
        if isinstance(outcome, ClassifiedError):
            logger.error("[%s] Invalid generation envelope: %s", call_id, outcome.kind.value)
        else:
            logger.info(
                "[%s] Generation succeeded: %d chars (max_tokens=%d)",
                call_id,
                len(outcome.text),
                request.max_output_tokens,
            )
        return outcome
