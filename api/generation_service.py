#!/usr/bin/env python3
"""
Global generation service for the workflow builder API server.
Creates the shared state store, the orchestrator and the badge listener
when the server starts and exposes them to all requests.
"""

import asyncio
from typing import Any, Dict, Optional

from core.config import settings
from core.logging_config import get_logger
from services.generation.badge import BadgeListener
from services.generation.notifications import LoggingNotificationSink, RecordingNotificationSink
from services.generation.orchestrator import GenerationOrchestrator
from services.generation.state_store import MemoryStateStore, StateStore, create_state_store

logger = get_logger(__name__)


class GlobalGenerationService:
    """Owns the process-wide orchestrator and its collaborators"""

    def __init__(self):
        self._store: Optional[StateStore] = None
        self._orchestrator: Optional[GenerationOrchestrator] = None
        self._notifications: Optional[RecordingNotificationSink] = None
        self._badge_task: Optional[asyncio.Task] = None
        self._initialized: bool = False
        self._initialization_error: Optional[str] = None

    async def initialize(self, store: Optional[StateStore] = None):
        """Create the store and orchestrator"""
        if self._initialized:
            return

        logger.info("🚀 Initializing Global Generation Service...")
        if store is None:
            try:
                store = await create_state_store(settings)
                logger.info(f"✅ {settings.state_backend} state store initialized successfully")
            except Exception as e:
                self._initialization_error = str(e)
                logger.warning(f"⚠️  State store initialization failed: {e}")
                logger.info("Continuing with in-memory state (not shared across processes)")
                store = MemoryStateStore()

        self._store = store
        self._notifications = RecordingNotificationSink(forward=LoggingNotificationSink())
        self._orchestrator = GenerationOrchestrator(store, settings=settings, notifier=self._notifications)
        self._badge_task = asyncio.create_task(BadgeListener(store).run())
        self._initialized = True
        logger.info("🎉 Global Generation Service initialized successfully")

    async def shutdown(self):
        if self._orchestrator is not None:
            await self._orchestrator.shutdown()
        if self._badge_task is not None:
            self._badge_task.cancel()
            await asyncio.gather(self._badge_task, return_exceptions=True)
        if self._store is not None:
            await self._store.close()
        self._store = None
        self._orchestrator = None
        self._badge_task = None
        self._initialized = False
        logger.info("🗑️  Generation service stopped")

    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def store(self) -> StateStore:
        if self._store is None:
            raise RuntimeError("Generation service not initialized")
        return self._store

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        if self._orchestrator is None:
            raise RuntimeError("Generation service not initialized")
        return self._orchestrator

    @property
    def notifications(self) -> RecordingNotificationSink:
        if self._notifications is None:
            raise RuntimeError("Generation service not initialized")
        return self._notifications

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "healthy": self._initialized,
            "state_backend": type(self._store).__name__ if self._store else None,
            "generation_running": bool(self._orchestrator and self._orchestrator.state.is_running),
            "initialization_error": self._initialization_error,
        }


global_generation_service = GlobalGenerationService()


async def get_global_generation_service() -> GlobalGenerationService:
    """Get the global generation service, initializing it on first use"""
    if not global_generation_service.is_initialized():
        await global_generation_service.initialize()
    return global_generation_service
