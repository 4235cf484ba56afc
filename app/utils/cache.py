"""Per-owner cache of "all tasks" results.

The store is the source of truth; entries here only save a query and expire
after their TTL. Writers invalidate the owner's entry before acknowledging,
so a read that starts after a write never sees the pre-write list.

A backend that cannot be reached behaves as an empty cache: errors are
logged and every lookup is a miss.
"""

import json
import logging
import threading
import time
from typing import Callable, Optional, Protocol, Sequence

import redis

from app.config import CACHE_TTL_SECONDS, REDIS_URL
from app.schemas.task import TaskOut

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "tasks:all"


def tasks_key(owner_id: str) -> str:
    """Cache key for an owner's task list."""
    if ":" in owner_id:
        raise ValueError(f"owner id {owner_id!r} must not contain ':'")
    return f"{CACHE_KEY_PREFIX}:{owner_id}"


class ResultCache(Protocol):
    def get(self, owner_id: str) -> Optional[list[TaskOut]]:
        """Return the cached tasks or None on a miss."""
        ...

    def set(self, owner_id: str, tasks: Sequence[TaskOut], ttl: int = CACHE_TTL_SECONDS) -> None:
        """Store tasks for `ttl` seconds, replacing any existing entry."""
        ...

    def invalidate(self, owner_id: str) -> None:
        """Drop the owner's entry so the next read goes to the store."""
        ...


class MemoryCache:
    """In-process cache shared by every request of one worker."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, tuple[TaskOut, ...]]] = {}
        self._lock = threading.Lock()

    def get(self, owner_id: str) -> Optional[list[TaskOut]]:
        key = tasks_key(owner_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache MISS: %s", key)
                return None
            expires_at, tasks = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("Cache EXPIRED: %s", key)
                return None
        logger.debug("Cache HIT: %s", key)
        return list(tasks)

    def set(self, owner_id: str, tasks: Sequence[TaskOut], ttl: int = CACHE_TTL_SECONDS) -> None:
        key = tasks_key(owner_id)
        now = self._clock()
        with self._lock:
            # drop entries of owners who never came back to read them
            for stale in [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]:
                del self._entries[stale]
            self._entries[key] = (now + ttl, tuple(tasks))
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)

    def invalidate(self, owner_id: str) -> None:
        key = tasks_key(owner_id)
        with self._lock:
            self._entries.pop(key, None)
        logger.debug("Cache DELETE: %s", key)


class NullCache:
    """Never stores anything; every read falls through to the store."""

    def get(self, owner_id: str) -> Optional[list[TaskOut]]:
        return None

    def set(self, owner_id: str, tasks: Sequence[TaskOut], ttl: int = CACHE_TTL_SECONDS) -> None:
        pass

    def invalidate(self, owner_id: str) -> None:
        pass


class RedisCache:
    """Redis-backed cache shared between workers.

    Entries are JSON lists written with SETEX. Redis errors are logged and
    treated as a miss (get) or ignored (set/invalidate).
    """

    def __init__(self, client: Optional[redis.Redis] = None, url: str = REDIS_URL):
        self.redis = client if client is not None else redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    def get(self, owner_id: str) -> Optional[list[TaskOut]]:
        key = tasks_key(owner_id)
        try:
            value = self.redis.get(key)
        except redis.RedisError as e:
            logger.warning("Cache get unavailable for key %s: %s", key, e)
            return None
        if value is None:
            logger.debug("Cache MISS: %s", key)
            return None
        try:
            tasks = [TaskOut.model_validate(item) for item in json.loads(value)]
        except (ValueError, TypeError):
            logger.warning("Discarding unreadable cache entry %s", key)
            self.invalidate(owner_id)
            return None
        logger.debug("Cache HIT: %s", key)
        return tasks

    def set(self, owner_id: str, tasks: Sequence[TaskOut], ttl: int = CACHE_TTL_SECONDS) -> None:
        key = tasks_key(owner_id)
        serialized = json.dumps([t.model_dump(mode="json") for t in tasks])
        try:
            self.redis.setex(key, ttl, serialized)
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        except redis.RedisError as e:
            logger.warning("Cache set unavailable for key %s: %s", key, e)

    def invalidate(self, owner_id: str) -> None:
        key = tasks_key(owner_id)
        try:
            self.redis.delete(key)
            logger.debug("Cache DELETE: %s", key)
        except redis.RedisError as e:
            # the entry may outlive this write until its TTL runs out
            logger.warning("Cache delete unavailable for key %s: %s", key, e)


def build_cache(backend: str) -> ResultCache:
    """Create the process-wide cache for the configured backend."""
    if backend == "redis":
        logger.info("Using Redis task cache at %s", REDIS_URL)
        return RedisCache()
    if backend == "none":
        logger.info("Task cache disabled")
        return NullCache()
    if backend != "memory":
        raise ValueError(f"unknown CACHE_BACKEND {backend!r}")
    return MemoryCache()
