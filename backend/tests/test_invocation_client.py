"""
VoiceSnap Backend — Invocation Client Unit Tests
==================================================

What:  Retry counts, backoff, envelope validation and terminal classification
       of InvocationClient, against a mocked transport.
How:   The transport is an AsyncMock; sleeps are recorded, never awaited.
"""

import asyncio

import pytest
from google.api_core import exceptions as google_exceptions

from tests.conftest import UpstreamError, text_envelope
from voicesnap.services.error_classifier import ClassifiedError, ErrorKind
from voicesnap.services.invocation_client import (
    GenerationRequest,
    GenerationResult,
    InvocationClient,
    MAX_RETRIES,
    compute_backoff_ms,
    extract_text,
)

REQUEST = GenerationRequest(prompt_text="Summarize: hello", max_output_tokens=1000)


class TestGenerationRequest:

    def test_rejects_empty_prompt(self):
        with pytest.raises(ValueError):
            GenerationRequest(prompt_text="", max_output_tokens=100)

    @pytest.mark.parametrize("tokens", [0, -5, True])
    def test_rejects_non_positive_budget(self, tokens):
        with pytest.raises(ValueError):
            GenerationRequest(prompt_text="hi", max_output_tokens=tokens)


class TestBackoff:

    @pytest.mark.parametrize("attempt", [1, 2])
    def test_delay_within_bounds(self, attempt):
        base = 1000 * 2 ** (attempt - 1)
        for _ in range(200):
            delay = compute_backoff_ms(attempt)
            assert base <= delay <= base + 500

    def test_jitter_extremes(self):
        assert compute_backoff_ms(3, jitter=lambda lo, hi: lo) == 4000
        assert compute_backoff_ms(3, jitter=lambda lo, hi: hi) == 4500

    def test_attempt_must_be_positive(self):
        with pytest.raises(ValueError):
            compute_backoff_ms(0)


class TestEnvelope:

    def test_joins_text_units_and_ignores_others(self):
        envelope = {
            "id": "msg_1",
            "content": [
                {"type": "text", "text": "Hello, "},
                {"type": "tool_use", "input": {}},
                {"type": "text", "text": "world", "citations": None},
            ],
        }
        assert extract_text(envelope) == GenerationResult(text="Hello, world")

    @pytest.mark.parametrize("envelope", [{}, {"content": []}, {"content": "text"}, None])
    def test_missing_content_is_invalid_response(self, envelope):
        outcome = extract_text(envelope)
        assert isinstance(outcome, ClassifiedError)
        assert outcome.kind == ErrorKind.INVALID_RESPONSE
        assert outcome.retryable is False

    @pytest.mark.parametrize("units", [
        [{"type": "other"}],
        [{"type": "text", "text": ""}],
        [{"type": "text", "text": 42}],
        [{"type": "image", "text": "not text kind"}],
    ])
    def test_no_usable_text_is_no_text_content(self, units):
        outcome = extract_text({"content": units})
        assert isinstance(outcome, ClassifiedError)
        assert outcome.kind == ErrorKind.NO_TEXT_CONTENT


class TestInvoke:

    @pytest.mark.asyncio
    async def test_success_returns_text(self, invocation_client, fake_transport, recorded_sleep):
        fake_transport.create_message.return_value = text_envelope("A summary.")

        result = await invocation_client.invoke(REQUEST)

        assert result == GenerationResult(text="A summary.")
        fake_transport.create_message.assert_awaited_once_with(
            model="test-model",
            max_tokens=1000,
            messages=[{"role": "user", "content": "Summarize: hello"}],
        )
        assert recorded_sleep.delays == []

    @pytest.mark.asyncio
    async def test_three_503s_exhaust_retries(self, invocation_client, fake_transport, recorded_sleep):
        fake_transport.create_message.side_effect = UpstreamError("overloaded", status_code=503)

        result = await invocation_client.invoke(REQUEST)

        assert isinstance(result, ClassifiedError)
        assert result.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert result.retryable is True
        assert result.upstream_status == 503
        assert fake_transport.create_message.await_count == MAX_RETRIES
        assert len(recorded_sleep.delays) == 2
        assert 1.0 <= recorded_sleep.delays[0] <= 1.5
        assert 2.0 <= recorded_sleep.delays[1] <= 2.5

    @pytest.mark.asyncio
    async def test_auth_rejection_is_not_retried(self, invocation_client, fake_transport, recorded_sleep):
        fake_transport.create_message.side_effect = UpstreamError("invalid x-api-key", status_code=401)

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.AUTH_FAILED
        assert result.retryable is False
        assert fake_transport.create_message.await_count == 1
        assert recorded_sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, invocation_client, fake_transport, recorded_sleep):
        fake_transport.create_message.side_effect = [
            UpstreamError("slow down", status_code=429),
            text_envelope("second time lucky"),
        ]

        result = await invocation_client.invoke(REQUEST)

        assert result == GenerationResult(text="second time lucky")
        assert fake_transport.create_message.await_count == 2
        assert len(recorded_sleep.delays) == 1

    @pytest.mark.asyncio
    async def test_rate_limited_terminal(self, invocation_client, fake_transport):
        fake_transport.create_message.side_effect = UpstreamError("slow down", status_code=429)

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.RATE_LIMITED
        assert result.retryable is True
        assert fake_transport.create_message.await_count == 3

    @pytest.mark.asyncio
    async def test_timeout_terminal(self, invocation_client, fake_transport):
        fake_transport.create_message.side_effect = asyncio.TimeoutError()

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.TIMEOUT
        assert result.retryable is True
        assert fake_transport.create_message.await_count == 3

    @pytest.mark.asyncio
    async def test_last_failure_decides_terminal_kind(self, invocation_client, fake_transport):
        fake_transport.create_message.side_effect = [
            UpstreamError("busy", status_code=503),
            UpstreamError("throttled", status_code=429),
            UpstreamError("Request timeout while reading"),
        ]

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_unknown_error_is_generic(self, invocation_client, fake_transport, recorded_sleep):
        fake_transport.create_message.side_effect = RuntimeError("secret internal detail")

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.UNKNOWN_ERROR
        assert result.retryable is False
        assert "secret" not in result.message
        assert fake_transport.create_message.await_count == 1
        assert recorded_sleep.delays == []

    @pytest.mark.asyncio
    async def test_malformed_envelope_is_not_retried(self, invocation_client, fake_transport):
        fake_transport.create_message.return_value = {"content": [{"type": "other"}]}

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.NO_TEXT_CONTENT
        assert fake_transport.create_message.await_count == 1

    @pytest.mark.asyncio
    async def test_google_api_errors_are_classified(self, invocation_client, fake_transport):
        fake_transport.create_message.side_effect = google_exceptions.ServiceUnavailable("down")

        result = await invocation_client.invoke(REQUEST)

        assert result.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert result.upstream_status == 503
        assert fake_transport.create_message.await_count == 3

    @pytest.mark.asyncio
    async def test_custom_attempt_budget(self, fake_transport, recorded_sleep):
        client = InvocationClient(fake_transport, "m", max_attempts=5, sleep=recorded_sleep)
        fake_transport.create_message.side_effect = ConnectionResetError()

        result = await client.invoke(REQUEST)

        assert result.kind == ErrorKind.UNKNOWN_ERROR
        assert fake_transport.create_message.await_count == 5
        assert len(recorded_sleep.delays) == 4
