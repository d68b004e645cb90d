"""
Retry/Timeout Controller for provider calls

Wraps one provider attempt with:
- a hard per-attempt timeout that cancels the in-flight call
- an overall generation deadline that is authoritative for giving up
- exponential backoff retries for overloaded providers only
- periodic "still waiting" status reports while an attempt is outstanding
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import (
    AttemptTimeoutError,
    OverallTimeoutError,
    OverloadedError,
    RetriesExhaustedError,
)

logger = logging.getLogger(__name__)

AttemptFn = Callable[[], Awaitable[Any]]
StatusCallback = Callable[[str], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


def is_overloaded(error: BaseException) -> bool:
    """Default retry predicate: only overloaded providers are retried"""
    return isinstance(error, OverloadedError)


@dataclass
class RetryOptions:
    """Timing and retry configuration for one generation"""
    per_attempt_timeout: float = 120.0
    max_generation_time: float = 180.0
    max_retries: int = 3
    base_delay: float = 2.0
    max_delay: float = 10.0
    status_interval: float = 10.0
    is_retryable: Callable[[BaseException], bool] = is_overloaded

    @classmethod
    def from_settings(cls, settings, extended_timeout: bool = False) -> "RetryOptions":
        return cls(
            per_attempt_timeout=(
                settings.extended_attempt_timeout_seconds
                if extended_timeout
                else settings.per_attempt_timeout_seconds
            ),
            max_generation_time=settings.max_generation_seconds,
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
            status_interval=settings.status_interval_seconds,
        )


def backoff_delay(retry_number: int, base_delay: float = 2.0, max_delay: float = 10.0) -> float:
    """Delay before retry number retry_number (1-indexed)"""
    return min(base_delay * (2 ** (retry_number - 1)), max_delay)


class RetryController:
    """
    Executes provider attempts under timeout and retry rules.

    The sleep function is injectable so backoff can be verified without
    waiting in tests.
    """

    def __init__(self, options: Optional[RetryOptions] = None, sleep: Optional[SleepFn] = None):
        self.options = options or RetryOptions()
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        attempt_fn: AttemptFn,
        label: str = "provider",
        on_status: Optional[StatusCallback] = None,
    ) -> Any:
        """Run attempt_fn until it succeeds, fails terminally or time runs out"""
        started = time.monotonic()
        reporter = None
        if on_status is not None:
            reporter = asyncio.create_task(self._report_status(on_status, label, started))

        try:
            return await asyncio.wait_for(
                self._retry_loop(attempt_fn, label),
                timeout=self.options.max_generation_time,
            )
        except asyncio.TimeoutError:
            logger.error(f"Maximum generation time exceeded for {label}, aborting")
            raise OverallTimeoutError(label, self.options.max_generation_time)
        finally:
            if reporter is not None:
                reporter.cancel()
                try:
                    await reporter
                except asyncio.CancelledError:
                    pass

    async def _retry_loop(self, attempt_fn: AttemptFn, label: str) -> Any:
        options = self.options
        retrying = AsyncRetrying(
            stop=stop_after_attempt(options.max_retries + 1),
            wait=wait_exponential(
                multiplier=options.base_delay,
                min=options.base_delay,
                max=options.max_delay,
            ),
            retry=retry_if_exception(options.is_retryable),
            before_sleep=before_sleep_log(logger, logging.INFO),
            sleep=self._sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    number = attempt.retry_state.attempt_number
                    if number > 1:
                        logger.info(f"Retry {number - 1}/{options.max_retries} for {label} request")
                    return await self._run_attempt(attempt_fn)
        except RetryError:
            raise RetriesExhaustedError(label, options.max_retries)

    async def _run_attempt(self, attempt_fn: AttemptFn) -> Any:
        timeout = self.options.per_attempt_timeout
        try:
            return await asyncio.wait_for(attempt_fn(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Request aborted after {timeout:g}s per-attempt timeout")
            raise AttemptTimeoutError(timeout)

    async def _report_status(self, on_status: StatusCallback, label: str, started: float) -> None:
        # Best effort: failures here never affect the generation
        while True:
            await asyncio.sleep(self.options.status_interval)
            elapsed = int(time.monotonic() - started)
            try:
                await on_status(f"Still waiting for {label} response... ({elapsed}s elapsed)")
            except Exception as e:
                logger.warning(f"Failed to publish generation status: {e}")
