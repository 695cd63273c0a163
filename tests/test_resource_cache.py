"""Tests for the TTL resource cache with request coalescing."""

import asyncio

import pytest

from listing_feed.cache import ResourceCache, get_resource_cache, reset_resource_cache


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingResolver:
    """Resolver that counts invocations and can be held open."""

    def __init__(self, value="value", error: Exception | None = None):
        self.value = value
        self.error = error
        self.calls = 0
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self):
        self.calls += 1
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResourceCache:
    return ResourceCache(clock=clock)


# ---------------------------------------------------------------------------
# Coalescing
# ---------------------------------------------------------------------------


async def test_concurrent_gets_share_one_resolution(cache):
    resolver = CountingResolver(value=["a.jpg", "b.jpg"])
    resolver.release.clear()

    pending = [asyncio.ensure_future(cache.get("images:1", resolver, 60)) for _ in range(5)]
    await asyncio.sleep(0)
    assert cache.in_flight_count == 1

    resolver.release.set()
    results = await asyncio.gather(*pending)

    assert resolver.calls == 1
    assert all(result == ["a.jpg", "b.jpg"] for result in results)
    assert all(result is results[0] for result in results)
    assert cache.in_flight_count == 0


async def test_concurrent_gets_share_the_same_rejection(cache):
    error = RuntimeError("boom")
    resolver = CountingResolver(error=error)
    resolver.release.clear()

    pending = [asyncio.ensure_future(cache.get("images:1", resolver, 60)) for _ in range(3)]
    await asyncio.sleep(0)
    resolver.release.set()
    results = await asyncio.gather(*pending, return_exceptions=True)

    assert resolver.calls == 1
    assert all(result is error for result in results)


async def test_different_keys_resolve_independently(cache):
    first = CountingResolver(value=1)
    second = CountingResolver(value=2)

    assert await asyncio.gather(cache.get("a", first, 60), cache.get("b", second, 60)) == [1, 2]
    assert first.calls == 1
    assert second.calls == 1


# ---------------------------------------------------------------------------
# TTL
# ---------------------------------------------------------------------------


async def test_value_served_from_cache_within_ttl(cache, clock):
    resolver = CountingResolver(value="v1")
    await cache.get("k", resolver, ttl_seconds=10)

    clock.now += 9.999
    assert await cache.get("k", resolver, ttl_seconds=10) == "v1"
    assert resolver.calls == 1


async def test_expired_value_is_resolved_again(cache, clock):
    resolver = CountingResolver(value="v1")
    await cache.get("k", resolver, ttl_seconds=10)

    clock.now += 10
    resolver.value = "v2"
    assert await cache.get("k", resolver, ttl_seconds=10) == "v2"
    assert resolver.calls == 2


async def test_expired_entries_are_not_evicted_in_background(cache, clock):
    await cache.get("k", CountingResolver(), ttl_seconds=1)
    clock.now += 50

    assert len(cache) == 1
    assert "k" not in cache
    assert cache.peek("k") is None


# ---------------------------------------------------------------------------
# Failures and invalidation
# ---------------------------------------------------------------------------


async def test_failure_is_not_cached(cache):
    resolver = CountingResolver(error=ValueError("down"))
    with pytest.raises(ValueError):
        await cache.get("k", resolver, 60)
    assert cache.in_flight_count == 0
    assert "k" not in cache

    resolver.error = None
    assert await cache.get("k", resolver, 60) == "value"
    assert resolver.calls == 2


async def test_invalidate_forces_a_new_resolution(cache):
    resolver = CountingResolver()
    await cache.get("k", resolver, 60)

    cache.invalidate("k")
    await cache.get("k", resolver, 60)
    assert resolver.calls == 2


async def test_invalidate_during_resolution_skips_the_write(cache):
    resolver = CountingResolver(value="stale")
    resolver.release.clear()

    pending = asyncio.ensure_future(cache.get("k", resolver, 60))
    await asyncio.sleep(0)
    cache.invalidate("k")
    resolver.release.set()

    assert await pending == "stale"
    assert "k" not in cache
    assert cache.in_flight_count == 0


async def test_cancelled_caller_does_not_cancel_shared_resolution(cache):
    resolver = CountingResolver(value="shared")
    resolver.release.clear()

    impatient = asyncio.ensure_future(cache.get("k", resolver, 60))
    patient = asyncio.ensure_future(cache.get("k", resolver, 60))
    await asyncio.sleep(0)
    impatient.cancel()
    resolver.release.set()

    assert await patient == "shared"
    assert impatient.cancelled()
    assert resolver.calls == 1


async def test_clear_drops_everything(cache):
    await cache.get("a", CountingResolver(), 60)
    await cache.get("b", CountingResolver(), 60)

    cache.clear()
    assert len(cache) == 0


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------


def test_default_cache_is_a_singleton():
    assert get_resource_cache() is get_resource_cache()


def test_reset_replaces_the_default_cache():
    replacement = ResourceCache()
    reset_resource_cache(replacement)
    assert get_resource_cache() is replacement
