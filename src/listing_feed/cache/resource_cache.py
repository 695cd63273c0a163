"""Resource cache: TTL cache with in-flight request coalescing.

Resolves a key through a caller-supplied async resolver and keeps the result
for a TTL. Concurrent callers for a key that is already being resolved await
the same task instead of starting a second fetch.

TTL is checked on access only; expired entries stay in memory until they are
overwritten or invalidated. Failures are never cached, so the next call
retries.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from listing_feed.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Resolver = Callable[[], Awaitable[T]]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: str
    value: T
    stored_at: float
    # TTL in effect when the entry was stored; used by peek/contains
    ttl_seconds: float

    def is_valid(self, now: float, ttl_seconds: Optional[float] = None) -> bool:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        return now - self.stored_at < ttl


class ResourceCache:
    """Key-addressed async cache.

    The check-then-act sequence in ``get`` (cache lookup, in-flight lookup,
    task registration) contains no ``await``, so on a single event loop two
    callers can never both start a resolution for the same key.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._in_flight: dict[str, asyncio.Task] = {}

    async def get(self, key: str, resolver: Resolver[T], ttl_seconds: float) -> T:
        """
        Return the value for ``key``, resolving it at most once at a time.

        Args:
            key: Cache key.
            resolver: Zero-argument coroutine function producing the value.
            ttl_seconds: How long a stored value is served without re-resolving.

        Raises:
            Whatever the resolver raised; every caller awaiting that
            resolution receives the same exception.
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_valid(self._clock(), ttl_seconds):
            return entry.value

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._resolve(key, resolver, ttl_seconds))
            self._in_flight[key] = task
        else:
            logger.debug("cache.coalesced", key=key)

        # A cancelled caller must not cancel the resolution other callers share
        return await asyncio.shield(task)

    async def _resolve(self, key: str, resolver: Resolver[T], ttl_seconds: float) -> T:
        me = asyncio.current_task()
        try:
            value = await resolver()
        except BaseException as e:
            if self._in_flight.get(key) is me:
                del self._in_flight[key]
            if not isinstance(e, asyncio.CancelledError):
                logger.debug("cache.resolve_failed", key=key, exc_type=type(e).__name__, error=str(e))
            raise

        # Skip the write if the key was invalidated while we were resolving
        if self._in_flight.get(key) is me:
            del self._in_flight[key]
            self._entries[key] = CacheEntry(key, value, self._clock(), ttl_seconds)
        return value

    def peek(self, key: str) -> Optional[Any]:
        """Return a still-valid value without resolving, else None."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_valid(self._clock()):
            return None
        return entry.value

    def invalidate(self, key: str) -> None:
        """Forget the entry and any in-flight marker for ``key``.

        A resolution already running keeps serving the callers awaiting it,
        but its result is not stored.
        """
        self._entries.pop(key, None)
        self._in_flight.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self._in_flight.clear()

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key) if isinstance(key, str) else None
        return entry is not None and entry.is_valid(self._clock())

    def __len__(self) -> int:
        # Counts expired-but-unaccessed entries too
        return len(self._entries)


_default_cache: Optional[ResourceCache] = None


def get_resource_cache() -> ResourceCache:
    """Get the process-wide cache singleton."""
    global _default_cache
    if _default_cache is None:
        _default_cache = ResourceCache()
    return _default_cache


def reset_resource_cache(cache: Optional[ResourceCache] = None) -> None:
    """Replace the process-wide cache (for testing)."""
    global _default_cache
    _default_cache = cache
