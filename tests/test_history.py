"""
Tests for the bounded generation history.
"""
import pytest

from services.generation.history import HistoryStore, new_history_entry
from services.generation.models import HistoryEntry


def entry(entry_id: int) -> HistoryEntry:
    return HistoryEntry(
        id=entry_id,
        prompt=f"prompt {entry_id}",
        json="{}",
        provider="openai",
        timestamp="2025-01-01T00:00:00Z",
    )


@pytest.mark.services
class TestHistoryStore:
    """Test append, eviction and removal."""

    @pytest.mark.asyncio
    async def test_keeps_twenty_most_recent(self, memory_store):
        history = HistoryStore(memory_store, limit=20)

        for i in range(1, 26):
            await history.append(entry(i))

        ids = [e.id for e in await history.list()]
        assert ids == list(range(25, 5, -1))

    @pytest.mark.asyncio
    async def test_stored_with_json_key(self, memory_store):
        history = HistoryStore(memory_store)
        await history.append(entry(1))

        stored = memory_store.snapshot()["generationHistory"]
        assert stored == [{
            "id": 1,
            "prompt": "prompt 1",
            "json": "{}",
            "provider": "openai",
            "timestamp": "2025-01-01T00:00:00Z",
        }]

    @pytest.mark.asyncio
    async def test_remove_preserves_order(self, memory_store):
        history = HistoryStore(memory_store)
        for i in range(1, 4):
            await history.append(entry(i))

        assert await history.remove(2) is True
        assert [e.id for e in await history.list()] == [3, 1]

    @pytest.mark.asyncio
    async def test_remove_missing_entry(self, memory_store):
        history = HistoryStore(memory_store)
        await history.append(entry(1))

        assert await history.remove(99) is False
        assert len(await history.list()) == 1

    @pytest.mark.asyncio
    async def test_get(self, memory_store):
        history = HistoryStore(memory_store)
        await history.append(entry(7))

        assert (await history.get(7)).prompt == "prompt 7"
        assert await history.get(8) is None

    @pytest.mark.asyncio
    async def test_malformed_entries_skipped(self, memory_store):
        await memory_store.set({"generationHistory": [{"id": "x"}, entry(1).to_store()]})

        assert [e.id for e in await HistoryStore(memory_store).list()] == [1]


def test_new_history_entry():
    created = new_history_entry("prompt", '{"a": 1}', "claude")
    assert created.json_output == '{"a": 1}'
    assert created.provider == "claude"
    assert created.timestamp.endswith("Z")
    assert created.id > 0
