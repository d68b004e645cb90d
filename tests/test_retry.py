"""
Tests for the retry/timeout controller.
"""
import asyncio

import pytest

from services.generation.errors import (
    AttemptTimeoutError,
    OverallTimeoutError,
    OverloadedError,
    ProviderError,
    RetriesExhaustedError,
)
from services.generation.retry import RetryController, RetryOptions, backoff_delay


class FlakyAttempt:
    """Attempt function failing a set number of times before succeeding."""

    def __init__(self, failures: int, error_factory=OverloadedError, result="ok"):
        self.failures = failures
        self.error_factory = error_factory
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory()
        return self.result


def test_backoff_delay_schedule():
    assert [backoff_delay(k) for k in range(1, 6)] == [2.0, 4.0, 8.0, 10.0, 10.0]


def test_options_from_settings(fast_settings):
    options = RetryOptions.from_settings(fast_settings)
    assert options.per_attempt_timeout == fast_settings.per_attempt_timeout_seconds
    assert options.max_retries == 3

    fast_settings.extended_attempt_timeout_seconds = 9.0
    assert RetryOptions.from_settings(fast_settings, extended_timeout=True).per_attempt_timeout == 9.0


@pytest.mark.services
class TestRetryController:
    """Test retries and backoff."""

    @pytest.mark.asyncio
    async def test_succeeds_after_two_overloaded_attempts(self, fake_sleep):
        attempt = FlakyAttempt(failures=2)
        controller = RetryController(RetryOptions(), sleep=fake_sleep)

        result = await controller.execute(attempt, label="Test")

        assert result == "ok"
        assert attempt.calls == 3
        assert fake_sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhaustion_after_max_retries(self, fake_sleep):
        attempt = FlakyAttempt(failures=100)
        controller = RetryController(RetryOptions(max_retries=3), sleep=fake_sleep)

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await controller.execute(attempt, label="Anthropic (Claude)")

        assert attempt.calls == 4
        assert fake_sleep.delays == [2.0, 4.0, 8.0]
        assert exc_info.value.message == (
            "Anthropic (Claude) API still overloaded after 3 retries. Please try again later."
        )

    @pytest.mark.asyncio
    async def test_non_retryable_error_fails_immediately(self, fake_sleep):
        attempt = FlakyAttempt(failures=1, error_factory=lambda: ProviderError("Invalid API Key", 401))
        controller = RetryController(RetryOptions(), sleep=fake_sleep)

        with pytest.raises(ProviderError) as exc_info:
            await controller.execute(attempt, label="Test")

        assert exc_info.value.status_code == 401
        assert attempt.calls == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_custom_retry_predicate(self, fake_sleep):
        attempt = FlakyAttempt(failures=1, error_factory=lambda: ProviderError("rate limited", 429))
        options = RetryOptions(is_retryable=lambda e: getattr(e, "status_code", None) == 429)
        controller = RetryController(options, sleep=fake_sleep)

        assert await controller.execute(attempt) == "ok"
        assert fake_sleep.delays == [2.0]


@pytest.mark.services
class TestTimeouts:
    """Test per-attempt and overall deadlines."""

    @pytest.mark.asyncio
    async def test_per_attempt_timeout(self, fake_sleep):
        async def slow():
            await asyncio.sleep(5)

        controller = RetryController(
            RetryOptions(per_attempt_timeout=0.05, max_generation_time=5), sleep=fake_sleep
        )

        with pytest.raises(AttemptTimeoutError) as exc_info:
            await controller.execute(slow)

        assert "timed out after 0.05 seconds" in exc_info.value.message
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_overall_deadline_is_authoritative(self):
        async def slow():
            await asyncio.sleep(5)

        controller = RetryController(RetryOptions(per_attempt_timeout=5, max_generation_time=0.1))

        with pytest.raises(OverallTimeoutError) as exc_info:
            await controller.execute(slow, label="Grok (x.ai)")

        assert exc_info.value.message == (
            "Generation timed out after 0.1 seconds. The Grok (x.ai) API might be overloaded."
        )

    def test_overall_timeout_message_in_minutes(self):
        error = OverallTimeoutError("OpenAI (GPT)", 180)
        assert error.message == "Generation timed out after 3 minutes. The OpenAI (GPT) API might be overloaded."
        assert error.duration == "3 minutes"

    @pytest.mark.asyncio
    async def test_overall_deadline_during_backoff(self):
        attempt = FlakyAttempt(failures=100)
        options = RetryOptions(max_generation_time=0.2, base_delay=1.0, max_delay=1.0)
        controller = RetryController(options)

        with pytest.raises(OverallTimeoutError):
            await controller.execute(attempt)

        assert attempt.calls == 1


@pytest.mark.services
class TestStatusReporting:
    """Test the periodic progress messages."""

    @pytest.mark.asyncio
    async def test_status_messages_while_waiting(self):
        messages = []

        async def on_status(message):
            messages.append(message)

        async def slow():
            await asyncio.sleep(0.12)
            return "done"

        controller = RetryController(RetryOptions(status_interval=0.03))
        assert await controller.execute(slow, label="Mistral AI", on_status=on_status) == "done"

        assert messages
        assert all(m.startswith("Still waiting for Mistral AI response... (") for m in messages)
        assert messages[0].endswith("s elapsed)")

    @pytest.mark.asyncio
    async def test_status_failures_do_not_affect_result(self):
        async def broken_status(message):
            raise RuntimeError("store unavailable")

        async def slow():
            await asyncio.sleep(0.08)
            return "done"

        controller = RetryController(RetryOptions(status_interval=0.02))
        assert await controller.execute(slow, on_status=broken_status) == "done"
