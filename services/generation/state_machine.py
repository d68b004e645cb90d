"""
Generation State Machine

Single writer of the generation state keys. Transitions are
Idle -> Running -> {Succeeded, Failed}; every generation gets an id and
exactly one terminal write is accepted per id, so a late result from a
cancelled or superseded generation can never overwrite the stored outcome.
"""

import uuid
from typing import Optional

from core.logging_config import get_logger
from .models import (
    CURRENT_PROMPT,
    GENERATION_COMPLETE,
    GENERATION_STATUS,
    STATE_KEYS,
    GenerationPhase,
    GenerationState,
)
from .state_store import StateStore

logger = get_logger(__name__)


class GenerationStateMachine:
    """Drives the persisted GenerationState for one orchestrator process"""

    def __init__(self, store: StateStore):
        self.store = store
        self._active_id: Optional[str] = None

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def is_running(self) -> bool:
        return self._active_id is not None

    async def begin(self, prompt: str, status: Optional[str] = None) -> str:
        """Enter Running for a new generation and return its id"""
        if self._active_id is not None:
            raise RuntimeError(f"Generation {self._active_id} is still running")

        generation_id = uuid.uuid4().hex[:12]
        self._active_id = generation_id
        state = GenerationState(in_progress=True, status=status)
        values = state.to_store()
        values[CURRENT_PROMPT] = prompt
        await self.store.set(values)
        logger.info(f"Generation {generation_id} started")
        return generation_id

    async def update_status(self, generation_id: str, message: str) -> bool:
        """Publish a progress message; ignored once the generation is terminal"""
        if generation_id != self._active_id:
            return False
        await self.store.set({GENERATION_STATUS: message})
        return True

    async def succeed(self, generation_id: str, generated_json: str) -> bool:
        return await self._terminate(
            generation_id,
            GenerationState(complete=True, generated_json=generated_json),
        )

    async def fail(self, generation_id: str, message: str) -> bool:
        return await self._terminate(
            generation_id,
            GenerationState(complete=True, error=message),
        )

    async def _terminate(self, generation_id: str, state: GenerationState) -> bool:
        if generation_id != self._active_id:
            logger.info(f"Discarding terminal write for inactive generation {generation_id}")
            return False
        # Claim the terminal slot before suspending on the store write
        self._active_id = None
        await self.store.set(state.to_store())
        logger.info(f"Generation {generation_id} finished: {state.phase.value}")
        return True

    async def reset(self) -> None:
        """Return to Idle, dropping any running generation"""
        if self._active_id is not None:
            logger.info(f"Dropping running generation {self._active_id}")
        self._active_id = None
        values = GenerationState().to_store()
        values[CURRENT_PROMPT] = ""
        await self.store.set(values)

    async def current(self) -> GenerationState:
        values = await self.store.get(STATE_KEYS)
        return GenerationState.model_validate(values)

    async def phase(self) -> GenerationPhase:
        return (await self.current()).phase


def is_terminal_change(changes) -> bool:
    """True when a change set records a completed generation"""
    complete = changes.get(GENERATION_COMPLETE)
    return bool(complete and complete.get("newValue"))

