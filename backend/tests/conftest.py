"""
VoiceSnap Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── fake_transport: AsyncMock standing in for GenerationTransport
    ├── recorded_sleep: async sleep double that records requested delays
    ├── invocation_client: InvocationClient over fake_transport + recorded_sleep
    ├── transcript_service: TranscriptService over invocation_client
    ├── api_headers: headers carrying the test API key
    └── test_client: HTTPX AsyncClient against an app built on fake_transport
"""

import os
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any app imports
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["API_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from voicesnap.services.invocation_client import InvocationClient  # noqa: E402
from voicesnap.services.llm_base import GenerationTransport  # noqa: E402
from voicesnap.services.transcript_service import TranscriptService  # noqa: E402

TEST_API_KEY = "test-secret-key"


def text_envelope(*texts: str) -> Dict[str, Any]:
    """Build a success envelope with one text unit per argument."""
    return {"content": [{"type": "text", "text": t} for t in texts]}


class UpstreamError(Exception):
    """Raw upstream failure carrying an HTTP-ish status, like SDK errors do."""

    def __init__(self, message: str = "upstream failure", status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class RecordedSleep:
    """Async stand-in for asyncio.sleep that records each delay (seconds)."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_transport():
    """
    A GenerationTransport double.

    Usage:
        fake_transport.create_message.return_value = text_envelope("hello")
        fake_transport.create_message.side_effect = [UpstreamError(status_code=503), ...]
    """
    transport = AsyncMock(spec=GenerationTransport)
    transport.create_message = AsyncMock(return_value=text_envelope("generated text"))
    transport.health_check = AsyncMock(return_value=True)
    return transport


@pytest.fixture
def recorded_sleep():
    return RecordedSleep()


@pytest.fixture
def invocation_client(fake_transport, recorded_sleep):
    return InvocationClient(
        transport=fake_transport,
        model="test-model",
        sleep=recorded_sleep,
    )


@pytest.fixture
def transcript_service(invocation_client):
    return TranscriptService(invocation_client)


@pytest.fixture
def api_headers():
    return {"X-API-Key": TEST_API_KEY}


@pytest_asyncio.fixture
async def test_client(fake_transport, recorded_sleep):
    """
    HTTPX AsyncClient talking to a freshly built app whose generation core
    runs on fake_transport and never really sleeps between retries.
    """
    from voicesnap.main import create_app

    app = create_app(transport=fake_transport)
    app.state.transcript_service.client._sleep = recorded_sleep
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
