"""
Tests for the badge listener.
"""
import asyncio

import pytest

from services.generation.badge import ERROR_COLOR, RUNNING_COLOR, SUCCESS_COLOR, BadgeListener
from services.generation.state_machine import GenerationStateMachine


class BadgeRecorder:
    def __init__(self):
        self.renders = []

    async def __call__(self, text, color):
        self.renders.append((text, color))


@pytest.mark.services
class TestBadgeListener:
    """Test glyph rendering for state changes."""

    @pytest.mark.asyncio
    async def test_running_badge(self, memory_store):
        recorder = BadgeRecorder()
        listener = BadgeListener(memory_store, renderer=recorder)

        await listener.handle(await memory_store.set({"generationInProgress": True}))

        assert recorder.renders == [("...", RUNNING_COLOR)]

    @pytest.mark.asyncio
    async def test_success_badge_clears(self, memory_store):
        recorder = BadgeRecorder()
        listener = BadgeListener(memory_store, renderer=recorder, success_clear_after=0.01)
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")

        await listener.handle(memory_store.history[-1])
        await machine.succeed(generation_id, "{}")
        await listener.handle(memory_store.history[-1])
        await asyncio.sleep(0.05)

        assert recorder.renders == [("...", RUNNING_COLOR), ("✓", SUCCESS_COLOR), ("", None)]

    @pytest.mark.asyncio
    async def test_error_badge(self, memory_store):
        recorder = BadgeRecorder()
        listener = BadgeListener(memory_store, renderer=recorder, error_clear_after=60)
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")
        await machine.fail(generation_id, "boom")

        await listener.handle(memory_store.history[-1])

        assert recorder.renders == [("!", ERROR_COLOR)]

    @pytest.mark.asyncio
    async def test_stop_without_completion_clears(self, memory_store):
        recorder = BadgeRecorder()
        listener = BadgeListener(memory_store, renderer=recorder)
        await memory_store.set({"generationInProgress": True})

        await listener.handle(await memory_store.set({"generationInProgress": False}))

        assert recorder.renders == [("", None)]

    @pytest.mark.asyncio
    async def test_run_consumes_change_channel(self, memory_store):
        recorder = BadgeRecorder()
        task = asyncio.create_task(BadgeListener(memory_store, renderer=recorder).run())
        await asyncio.sleep(0)

        await memory_store.set({"generationInProgress": True})
        await asyncio.sleep(0.01)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert recorder.renders == [("...", RUNNING_COLOR)]
