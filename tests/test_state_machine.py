"""
Tests for the generation state machine.
"""
import pytest

from services.generation.models import GenerationPhase
from services.generation.state_machine import GenerationStateMachine, is_terminal_change


@pytest.mark.services
class TestGenerationStateMachine:
    """Test state transitions over the shared store."""

    @pytest.mark.asyncio
    async def test_begin_enters_running(self, memory_store):
        machine = GenerationStateMachine(memory_store)

        generation_id = await machine.begin("build a workflow")

        assert machine.is_running
        assert machine.active_id == generation_id
        snapshot = memory_store.snapshot()
        assert snapshot["generationInProgress"] is True
        assert snapshot["generationComplete"] is False
        assert snapshot["generatedJson"] is None
        assert snapshot["generationError"] is None
        assert snapshot["currentPrompt"] == "build a workflow"
        assert await machine.phase() == GenerationPhase.RUNNING

    @pytest.mark.asyncio
    async def test_success_is_terminal(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")

        assert await machine.succeed(generation_id, '{"a": 1}') is True

        state = await machine.current()
        assert state.in_progress is False
        assert state.complete is True
        assert state.generated_json == '{"a": 1}'
        assert state.error is None
        assert state.phase == GenerationPhase.SUCCEEDED
        assert not machine.is_running

    @pytest.mark.asyncio
    async def test_only_one_terminal_write(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")

        assert await machine.fail(generation_id, "Generation cancelled") is True
        assert await machine.succeed(generation_id, '{"late": true}') is False

        state = await machine.current()
        assert state.error == "Generation cancelled"
        assert state.generated_json is None
        assert state.phase == GenerationPhase.FAILED

    @pytest.mark.asyncio
    async def test_running_observed_before_complete(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")
        await machine.update_status(generation_id, "Still waiting...")
        await machine.succeed(generation_id, "{}")

        in_progress_index = next(
            i for i, changes in enumerate(memory_store.history)
            if changes.get("generationInProgress", {}).get("newValue") is True
        )
        complete_index = next(
            i for i, changes in enumerate(memory_store.history) if is_terminal_change(changes)
        )
        assert in_progress_index < complete_index

        for changes in memory_store.history:
            json_value = changes.get("generatedJson", {}).get("newValue")
            error_value = changes.get("generationError", {}).get("newValue")
            assert not (json_value and error_value)

    @pytest.mark.asyncio
    async def test_status_ignored_after_terminal(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")
        await machine.fail(generation_id, "boom")

        assert await machine.update_status(generation_id, "Still waiting...") is False
        assert memory_store.snapshot()["generationStatus"] is None

    @pytest.mark.asyncio
    async def test_begin_while_running_raises(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        await machine.begin("first")

        with pytest.raises(RuntimeError):
            await machine.begin("second")

    @pytest.mark.asyncio
    async def test_reset_returns_to_idle(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")
        await machine.succeed(generation_id, "{}")

        await machine.reset()

        state = await machine.current()
        assert state.phase == GenerationPhase.IDLE
        assert state.generated_json is None
        assert memory_store.snapshot()["currentPrompt"] == ""

    @pytest.mark.asyncio
    async def test_reset_drops_running_generation(self, memory_store):
        machine = GenerationStateMachine(memory_store)
        generation_id = await machine.begin("p")

        await machine.reset()

        assert not machine.is_running
        assert await machine.succeed(generation_id, "{}") is False
