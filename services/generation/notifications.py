"""
User-facing notifications fired once per terminal transition.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from core.logging_config import get_logger
from .models import Notification

logger = get_logger(__name__)

SUCCESS_TITLE = "n8n Workflow Builder AI"
SUCCESS_MESSAGE = "JSON generation complete!"
ERROR_TITLE = "Generation Error"
TIMEOUT_TITLE = "Generation Timeout"
MAX_ERROR_MESSAGE_LENGTH = 100

NotificationSink = Callable[[Notification], Awaitable[None]]


def success_notification(dismiss_after: float = 3.0) -> Notification:
    return Notification(
        title=SUCCESS_TITLE,
        message=SUCCESS_MESSAGE,
        kind="success",
        dismiss_after=dismiss_after,
    )


def error_notification(message: str, dismiss_after: float = 5.0) -> Notification:
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        message = message[:MAX_ERROR_MESSAGE_LENGTH] + "..."
    return Notification(
        title=ERROR_TITLE,
        message=message,
        kind="error",
        dismiss_after=dismiss_after,
    )


def timeout_notification(label: str, duration: str = "3 minutes", dismiss_after: float = 5.0) -> Notification:
    return Notification(
        title=TIMEOUT_TITLE,
        message=f"Generation with {label} timed out after {duration}. Please try again later.",
        kind="timeout",
        dismiss_after=dismiss_after,
    )


class LoggingNotificationSink:
    """Default sink: writes notifications to the log"""

    async def __call__(self, notification: Notification) -> None:
        log = logger.info if notification.kind == "success" else logger.warning
        log(f"🔔 {notification.title}: {notification.message}")


class RecordingNotificationSink:
    """Keeps recent notifications and lets callers wait for the next one"""

    def __init__(self, limit: int = 50, forward: Optional[NotificationSink] = None):
        self.limit = limit
        self.forward = forward
        self.notifications: List[Notification] = []
        self._event = asyncio.Event()

    async def __call__(self, notification: Notification) -> None:
        self.notifications.append(notification)
        del self.notifications[:-self.limit]
        self._event.set()
        if self.forward is not None:
            await self.forward(notification)

    async def wait(self, timeout: Optional[float] = None) -> Notification:
        await asyncio.wait_for(self._event.wait(), timeout=timeout)
        self._event.clear()
        return self.notifications[-1]
