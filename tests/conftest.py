"""
Pytest configuration and fixtures for the workflow builder tests.
"""
import os
import sys
from pathlib import Path
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# The API must not need a Redis server under test
os.environ.setdefault("STATE_BACKEND", "memory")

from api.main import app
from core.config import Settings
from services.generation.notifications import RecordingNotificationSink
from services.generation.state_store import MemoryStateStore


@pytest.fixture
def test_client():
    """Create a test client for the FastAPI application."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def fast_settings():
    """Settings with short deadlines so timeout paths finish quickly."""
    return Settings(
        state_backend="memory",
        per_attempt_timeout_seconds=2.0,
        extended_attempt_timeout_seconds=2.0,
        max_generation_seconds=5.0,
        status_interval_seconds=60.0,
        max_retries=3,
        retry_base_delay=2.0,
        retry_max_delay=10.0,
    )


@pytest.fixture
def memory_store():
    """Empty in-memory state store."""
    return MemoryStateStore()


@pytest.fixture
def notification_sink():
    """Sink that records every notification."""
    return RecordingNotificationSink()


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_sleep():
    return SleepRecorder()


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable):
        self.requests: List[httpx.Request] = []

        async def record(request: httpx.Request):
            self.requests.append(request)
            response = handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        super().__init__(record)


@pytest.fixture
def make_transport():
    """Build a recording mock transport from a request handler."""
    return RecordingTransport


@pytest.fixture
def sample_generation_message():
    """Start command as sent by the UI."""
    return {
        "action": "startBackgroundGeneration",
        "providerId": "claude",
        "apiKey": "sk-ant-test",
        "model": "claude-3-5-sonnet-20241022",
        "userPrompt": "Send a Slack message when a webhook is called",
        "systemPrompt": "You build n8n workflows.",
    }
