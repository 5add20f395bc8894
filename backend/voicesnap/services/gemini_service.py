"""
VoiceSnap Backend — Google Gemini Generation Transport
========================================================

What:  Concrete GenerationTransport backed by the Google Gemini API.
How:   Sends one user message to `generate_content_async` with an output token
       cap and a per-call timeout, then normalizes the first candidate's parts
       into the provider-neutral envelope:

           {"content": [{"type": "text", "text": "..."}, ...],
            "model": "...", "finish_reason": "STOP"}

Who:   Built by the app factory and handed to InvocationClient.
When:  Once per process; a single GenerativeModel per model name is reused.

Error handling:
    Nothing is caught here. google.api_core exceptions carry an integer
    `code` (429 ResourceExhausted, 401 Unauthenticated, 503 ServiceUnavailable,
    504 DeadlineExceeded, ...) which the error classifier reads directly.
    DeadlineExceeded is what the per-call timeout raises; it classifies as
    TIMEOUT.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import google.generativeai as genai

from voicesnap.services.llm_base import GenerationTransport

logger = logging.getLogger(__name__)


def _part_to_unit(part: Any) -> Dict[str, Any]:
    """Map one Gemini Part to a content unit; non-text parts become kind "other"."""
    text = getattr(part, "text", None)
    if isinstance(text, str) and text:
        return {"type": "text", "text": text}
    return {"type": "other"}


def _to_gemini_contents(messages: List[Dict[str, str]]) -> List[Dict[str, Any]]:
    """
    Convert provider-neutral messages to Gemini `contents`.

    What:  {"role", "content"} → {"role", "parts": [content]}; role defaults
           to "user".
    Why:   generate_content_async takes a list of Content dicts, each holding
           parts rather than a single string.
    """
    return [
        {"role": message.get("role", "user"), "parts": [message["content"]]}
        for message in messages
    ]


class GeminiTransport(GenerationTransport):
    """
    Google Gemini implementation of the generation boundary.

    Args:
        api_key:          Gemini API key. Empty/placeholder keys skip SDK
                          configuration (useful for tests and health probes).
        default_model:    Model used when no other model was requested before.
        timeout_seconds:  Per-call request timeout passed to the SDK.
    """

    def __init__(
        self,
        api_key: str,
        default_model: str,
        timeout_seconds: float = 60.0,
    ):
        # Why global configure: the SDK keeps auth in module-level state
        if api_key and api_key != "your_gemini_api_key_here":
            genai.configure(api_key=api_key)

        self.default_model = default_model
        self.timeout_seconds = timeout_seconds
        self._models: Dict[str, Any] = {default_model: genai.GenerativeModel(default_model)}

        logger.info(
            "GeminiTransport initialized with model=%s, timeout=%.0fs",
            default_model,
            timeout_seconds,
        )

    def _model_for(self, model: str) -> Any:
        """Return the cached GenerativeModel for `model`, creating it on first use."""
        # Why cache: a GenerativeModel is bound to one model name and holds no
        # per-request state
        if model not in self._models:
            self._models[model] = genai.GenerativeModel(model)
        return self._models[model]

    async def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, str]],
    ) -> Mapping[str, Any]:
        """
        Send one prompt to Gemini and return the normalized envelope.

        What:    One upstream call, no retries. InvocationClient owns retrying.
        How:     generate_content_async with the token cap as
                 `max_output_tokens` and the transport timeout as a request
                 option; the first candidate's parts become content units.
        Raises:  Whatever the SDK raises (google.api_core exceptions), untouched.
        Returns: {"content": [...], "model": str, "finish_reason": str | None}
        """
        start_time = time.perf_counter()

        response = await self._model_for(model).generate_content_async(
            _to_gemini_contents(messages),
            generation_config={"max_output_tokens": max_tokens},
            request_options={"timeout": self.timeout_seconds},
        )

        duration_ms = (time.perf_counter() - start_time) * 1000

        # Why only the first candidate: candidate_count is left at its default of 1
        candidates = list(getattr(response, "candidates", None) or [])
        units: List[Dict[str, Any]] = []
        finish_reason: Optional[str] = None
        if candidates:
            candidate = candidates[0]
            content = getattr(candidate, "content", None)
            units = [_part_to_unit(part) for part in getattr(content, "parts", None) or []]
            reason = getattr(candidate, "finish_reason", None)
            finish_reason = getattr(reason, "name", None) or (str(reason) if reason else None)

        logger.debug(
            "Gemini call completed in %.0fms: %d content unit(s), finish_reason=%s",
            duration_ms,
            len(units),
            finish_reason,
        )

        return {"content": units, "model": model, "finish_reason": finish_reason}

    async def health_check(self) -> bool:
        """
        Check if the Gemini API is reachable.

        How:     Lists available models (no token cost). The SDK call is
                 blocking, so it runs in a worker thread.
        Returns: True if reachable and authenticated, False otherwise.
        """
        try:
            models = await asyncio.to_thread(lambda: list(genai.list_models()))
            target = f"models/{self.default_model}"
            if target not in [m.name for m in models]:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False
