"""
Badge listener

Observes generation state changes and renders a transient status glyph:
"..." while running, a check mark on success and "!" on failure. The
completion glyphs clear themselves after a short delay.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from core.logging_config import get_logger
from .models import GENERATED_JSON, GENERATION_COMPLETE, GENERATION_ERROR, GENERATION_IN_PROGRESS
from .state_machine import is_terminal_change
from .state_store import Changes, StateStore

logger = get_logger(__name__)

RUNNING_COLOR = "#F59E0B"
SUCCESS_COLOR = "#22C55E"
ERROR_COLOR = "#EF4444"

BadgeRenderer = Callable[[str, Optional[str]], Awaitable[None]]


async def log_badge(text: str, color: Optional[str]) -> None:
    if text:
        logger.info(f"Badge: {text} ({color})")
    else:
        logger.debug("Badge cleared")


class BadgeListener:
    """Maps store change sets onto badge renders"""

    def __init__(
        self,
        store: StateStore,
        renderer: BadgeRenderer = log_badge,
        success_clear_after: float = 3.0,
        error_clear_after: float = 5.0,
    ):
        self.store = store
        self.renderer = renderer
        self.success_clear_after = success_clear_after
        self.error_clear_after = error_clear_after
        self._clear_task: Optional[asyncio.Task] = None

    async def run(self) -> None:
        """Consume the change channel until cancelled"""
        async for changes in self.store.subscribe():
            try:
                await self.handle(changes)
            except Exception as e:
                logger.warning(f"Badge update failed: {e}")

    async def handle(self, changes: Changes) -> None:
        in_progress = changes.get(GENERATION_IN_PROGRESS)
        if in_progress is not None:
            if in_progress.get("newValue") is True:
                await self._render("...", RUNNING_COLOR)
            elif not changes.get(GENERATION_COMPLETE):
                await self._render("", None)

        if not is_terminal_change(changes):
            return

        values = await self.store.get([GENERATED_JSON, GENERATION_ERROR])
        if values.get(GENERATED_JSON) and not values.get(GENERATION_ERROR):
            await self._render("✓", SUCCESS_COLOR, clear_after=self.success_clear_after)
        elif values.get(GENERATION_ERROR):
            await self._render("!", ERROR_COLOR, clear_after=self.error_clear_after)

    async def _render(self, text: str, color: Optional[str], clear_after: Optional[float] = None) -> None:
        if self._clear_task is not None:
            self._clear_task.cancel()
            self._clear_task = None
        await self.renderer(text, color)
        if clear_after is not None:
            self._clear_task = asyncio.create_task(self._clear_later(clear_after))

    async def _clear_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._clear_task = None
        await self.renderer("", None)
