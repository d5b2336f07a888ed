"""
Queue of storage objects waiting to be deleted.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation for production.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)


@dataclass
class CleanupTask:
    key: str
    attempts: int = 0

    def to_json(self) -> str:
        return json.dumps({"key": self.key, "attempts": self.attempts})

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CleanupTask":
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        payload = json.loads(raw)
        return cls(key=payload["key"], attempts=int(payload.get("attempts", 0)))


class CleanupQueue(Protocol):
    """Minimal queue interface for handing object keys to the cleanup worker."""

    def enqueue(self, task: CleanupTask) -> None:
        ...

    def dequeue(
        self, *, block: bool = True, timeout: int | None = None
    ) -> Optional[CleanupTask]:
        ...


@dataclass
class InMemoryCleanupQueue:
    """Simple FIFO queue for testing/dev."""

    items: list[CleanupTask] = field(default_factory=list)

    def enqueue(self, task: CleanupTask) -> None:
        self.items.append(task)

    def dequeue(
        self, *, block: bool = True, timeout: int | None = None
    ) -> Optional[CleanupTask]:
        if not self.items:
            return None
        return self.items.pop(0)


@dataclass
class RedisCleanupQueue:
    """Redis-backed queue using list push/pop operations."""

    url: str
    queue_key: str = "outfits:storage-cleanup"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def enqueue(self, task: CleanupTask) -> None:
        self.client.rpush(self.queue_key, task.to_json())

    def dequeue(
        self, *, block: bool = True, timeout: int | None = None
    ) -> Optional[CleanupTask]:
        try:
            if block:
                result = self.client.blpop(self.queue_key, timeout=timeout or 0)
                if result is None:
                    return None
                _, raw = result
            else:
                raw = self.client.lpop(self.queue_key)
                if raw is None:
                    return None
            return CleanupTask.from_json(raw)
        except redis_exceptions.ConnectionError:
            # Reconnect and report an empty queue; the worker polls again.
            self.client = redis.Redis.from_url(self.url)
            return None


def schedule_cleanup(queue: CleanupQueue, key: str) -> bool:
    """
    Hand ``key`` to the cleanup worker.

    Runs after the metadata change has committed, so a queue failure is
    logged and reported as False instead of failing the request.
    """
    try:
        queue.enqueue(CleanupTask(key=key))
    except Exception:
        logger.exception("Failed to enqueue storage cleanup for %s", key)
        return False
    return True
