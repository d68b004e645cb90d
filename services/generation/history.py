"""
Bounded history of successful generations, most recent first.
"""

import time
from datetime import datetime, timezone
from typing import List, Optional

from core.logging_config import get_logger
from .models import GENERATION_HISTORY, HistoryEntry
from .state_store import StateStore

logger = get_logger(__name__)


class HistoryStore:
    """
    History kept under ``generationHistory`` in the shared store.

    append/remove are read-modify-write sequences over the store and are
    not atomic across processes.
    """

    def __init__(self, store: StateStore, limit: int = 20):
        self.store = store
        self.limit = limit

    async def list(self) -> List[HistoryEntry]:
        raw = await self.store.get_value(GENERATION_HISTORY, [])
        entries = []
        for item in raw or []:
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValueError as e:
                logger.warning(f"Skipping malformed history entry: {e}")
        return entries

    async def append(self, entry: HistoryEntry) -> List[HistoryEntry]:
        """Prepend entry and drop the oldest entries beyond the limit"""
        entries = [entry] + await self.list()
        if len(entries) > self.limit:
            logger.debug(f"Evicting {len(entries) - self.limit} history entries")
            entries = entries[:self.limit]
        await self._save(entries)
        return entries

    async def remove(self, entry_id: int) -> bool:
        entries = await self.list()
        remaining = [entry for entry in entries if entry.id != entry_id]
        if len(remaining) == len(entries):
            return False
        await self._save(remaining)
        return True

    async def get(self, entry_id: int) -> Optional[HistoryEntry]:
        for entry in await self.list():
            if entry.id == entry_id:
                return entry
        return None

    async def _save(self, entries: List[HistoryEntry]) -> None:
        await self.store.set({GENERATION_HISTORY: [entry.to_store() for entry in entries]})


def new_history_entry(prompt: str, generated_json: str, provider: str) -> HistoryEntry:
    """Build an entry stamped with the current time"""
    now_ms = int(time.time() * 1000)
    timestamp = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    return HistoryEntry(
        id=now_ms,
        prompt=prompt,
        json=generated_json,
        provider=provider,
        timestamp=timestamp.isoformat().replace("+00:00", "Z"),
    )
