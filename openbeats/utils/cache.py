"""Stream URL cache with TTL expiration and in-flight request sharing"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Hashable, Optional, Tuple, TypeVar

from ..config.time_constants import TimeIntervals
from ..pkg.logger import logger

T = TypeVar("T")


@dataclass
class CacheEntry:
    """Cached value with the time it was obtained"""

    value: object
    obtained_at: float

    def is_expired(self, ttl: float, now: float) -> bool:
        return (now - self.obtained_at) >= ttl


class StreamUrlCache:
    """
    Short-lived cache keyed by ``(source, source_track_id)``.

    Purely an optimization: an expired or missing entry just means the caller
    resolves again. ``get_or_resolve`` makes a second request for a key that
    is already being resolved await the first resolution instead of issuing
    a duplicate network call.
    """

    def __init__(
        self,
        ttl: float = TimeIntervals.STREAM_URL_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._inflight: Dict[Hashable, asyncio.Task] = {}
        self._stats = {"hits": 0, "misses": 0, "shared": 0, "writes": 0}

    def get(self, key: Hashable) -> Optional[object]:
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if entry.is_expired(self.ttl, self._clock()):
            logger.debug(f"Stream cache expired: {key}")
            del self._entries[key]
            self._stats["misses"] += 1
            return None

        self._stats["hits"] += 1
        return entry.value

    def set(self, key: Hashable, value: object) -> None:
        self._entries[key] = CacheEntry(value=value, obtained_at=self._clock())
        self._stats["writes"] += 1

    def invalidate(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def cleanup_expired(self) -> int:
        """Drop expired entries, return how many were removed"""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(self.ttl, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"🧹 Stream cache cleanup: removed {len(expired)} expired entries")
        return len(expired)

    async def get_or_resolve(
        self,
        key: Hashable,
        resolver: Callable[[], Awaitable[T]],
        should_cache: Callable[[T], bool] = lambda _: True,
    ) -> Tuple[T, bool]:
        """
        Return ``(value, was_cached)``.

        The resolution runs in its own task shared by every concurrent caller
        for the same key; cancelling one caller does not cancel it for the
        others. Its result is written to the cache once, by that task.
        """
        cached = self.get(key)
        if cached is not None:
            return cached, True

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._resolve_and_store(key, resolver, should_cache))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            self._stats["shared"] += 1
            logger.debug(f"Awaiting in-flight resolution for {key}")

        return await asyncio.shield(task), False

    async def _resolve_and_store(self, key, resolver, should_cache):
        value = await resolver()
        if should_cache(value):
            self.set(key, value)
        return value

    def _forget(self, key: Hashable, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Retrieve the exception so an unobserved failure is not reported as never retrieved
        if not task.cancelled():
            task.exception()

    def in_flight(self, key: Hashable) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict:
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0.0
        return {
            **self._stats,
            "cache_size": len(self._entries),
            "hit_rate": hit_rate,
            "ttl": self.ttl,
        }
