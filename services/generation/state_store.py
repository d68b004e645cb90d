"""
Shared persisted key-value store for generation state.

The store is the single source of truth shared between the orchestrator
and any number of UI processes, and doubles as the change channel: every
write publishes the set of keys whose value actually changed.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

from redis.asyncio import ConnectionPool, Redis

logger = logging.getLogger(__name__)

# {key: {"oldValue": ..., "newValue": ...}}
Changes = Dict[str, Dict[str, Any]]


def diff_values(current: Dict[str, Any], values: Dict[str, Any]) -> Changes:
    """Compute the change records for writing values over current"""
    changes: Changes = {}
    for key, new_value in values.items():
        old_value = current.get(key)
        if old_value != new_value or key not in current:
            changes[key] = {"oldValue": old_value, "newValue": new_value}
    return changes


class StateStore(ABC):
    """Persisted key-value store with change subscriptions"""

    @abstractmethod
    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Return the stored values for keys; missing keys are omitted"""

    @abstractmethod
    async def set(self, values: Dict[str, Any]) -> Changes:
        """Write values and publish the resulting changes"""

    @abstractmethod
    def subscribe(self) -> AsyncIterator[Changes]:
        """Iterate over change sets as they are published"""

    async def get_value(self, key: str, default: Any = None) -> Any:
        values = await self.get([key])
        return values.get(key, default)

    async def close(self) -> None:
        return None


class MemoryStateStore(StateStore):
    """In-process store for single-process deployments and tests"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._subscribers: List[asyncio.Queue] = []
        self.history: List[Changes] = []

    async def get(self, keys):
        return {key: self._values[key] for key in keys if key in self._values}

    async def set(self, values):
        changes = diff_values(self._values, values)
        self._values.update(values)
        if changes:
            self.history.append(changes)
            for queue in list(self._subscribers):
                queue.put_nowait(changes)
        return changes

    def subscribe(self):
        # Registered now, so changes made before the first iteration are kept
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue):
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)


class RedisStateStore(StateStore):
    """Redis-backed store: one hash of JSON values plus a pub/sub channel"""

    def __init__(self, redis_client: Redis, key_prefix: str = "workflow_builder"):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.hash_key = f"{key_prefix}:state"
        self.channel = f"{key_prefix}:changes"

    @classmethod
    async def from_url(cls, redis_url: str, key_prefix: str = "workflow_builder") -> "RedisStateStore":
        """Create a store with its own connection pool"""
        pool = ConnectionPool.from_url(
            redis_url,
            decode_responses=True,
            max_connections=20,
        )
        client = Redis(connection_pool=pool)
        await client.ping()
        logger.info("Redis state store connection established")
        return cls(client, key_prefix=key_prefix)

    async def get(self, keys):
        keys = list(keys)
        if not keys:
            return {}
        raw_values = await self.redis.hmget(self.hash_key, keys)
        return {
            key: json.loads(raw)
            for key, raw in zip(keys, raw_values)
            if raw is not None
        }

    async def set(self, values):
        # Read-modify-write is not atomic across processes
        current = await self.get(values.keys())
        changes = diff_values(current, values)
        if not values:
            return changes
        await self.redis.hset(
            self.hash_key,
            mapping={key: json.dumps(value) for key, value in values.items()},
        )
        if changes:
            await self.redis.publish(self.channel, json.dumps(changes))
        return changes

    async def subscribe(self):
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except (TypeError, ValueError) as e:
                    logger.warning(f"Ignoring malformed state change message: {e}")
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.close()

    async def close(self):
        await self.redis.close()
        logger.info("Redis state store closed")


async def create_state_store(settings) -> StateStore:
    """Build the store selected by settings.state_backend"""
    backend = settings.state_backend.lower()
    if backend == "memory":
        logger.info("Using in-memory generation state store")
        return MemoryStateStore()
    if backend == "redis":
        return await RedisStateStore.from_url(settings.redis_url, settings.state_key_prefix)
    raise ValueError(f"Unknown state backend: {settings.state_backend}")
