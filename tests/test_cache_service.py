"""
Tests for the cache store, the in-flight coalescer and the read-through cache.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from exam_cache.entities import KeyState
from exam_cache.repositories import InMemoryCacheRepository
from exam_cache.services import InFlightCoalescer, ReadThroughCache, RevalidationBus


def test_store_freshness_boundary(store, clock):
    store.put("k", "v", ttl=300)

    clock.now = 299.999
    assert store.get("k").is_fresh

    clock.now = 300.0
    lookup = store.get("k")
    assert lookup is not None
    assert not lookup.is_fresh
    assert lookup.value == "v"


def test_store_invalidate_tag_only_drops_tagged(store):
    store.put("a", 1, ttl=60, tags=["examtracker"])
    store.put("b", 2, ttl=60, tags=["examtracker", "exam-categories"])
    store.put("c", 3, ttl=60)

    assert store.invalidate_tag("examtracker") == 2
    assert store.keys() == ["c"]
    assert store.invalidate_tag("examtracker") == 0


def test_store_evicts_oldest_when_bounded(clock):
    store = InMemoryCacheRepository(clock=clock, max_entries=2)
    store.put("a", 1, ttl=60)
    clock.advance(1)
    store.put("b", 2, ttl=60)
    clock.advance(1)
    store.put("c", 3, ttl=60)

    assert sorted(store.keys()) == ["b", "c"]
    assert store.get_stats()["max_entries"] == 2


@pytest.mark.asyncio
async def test_fresh_hit_does_not_call_compute(cache):
    compute = AsyncMock(return_value={"easy": 2})

    first = await cache.get_or_compute("k", compute, ttl=300)
    second = await cache.get_or_compute("k", compute, ttl=300)

    assert first == second == {"easy": 2}
    assert compute.await_count == 1
    assert cache.metrics.hits == 1
    assert cache.metrics.misses == 1


@pytest.mark.asyncio
async def test_stale_entry_is_recomputed(cache, clock):
    compute = AsyncMock(side_effect=["old", "new"])

    assert await cache.get_or_compute("k", compute, ttl=300) == "old"
    clock.now = 299.999
    assert await cache.get_or_compute("k", compute, ttl=300) == "old"
    clock.now = 300.0
    assert cache.key_state("k") == KeyState.STALE
    assert await cache.get_or_compute("k", compute, ttl=300) == "new"

    assert compute.await_count == 2
    assert cache.metrics.stale_refreshes == 1
    assert cache.key_state("k") == KeyState.FRESH


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_computation(cache):
    started = asyncio.Event()
    unblock = asyncio.Event()
    calls = 0

    async def compute():
        nonlocal calls
        calls += 1
        started.set()
        await unblock.wait()
        return 99

    first = asyncio.create_task(cache.get_or_compute("k", compute, ttl=60))
    await started.wait()
    assert cache.key_state("k") == KeyState.COMPUTING

    others = [asyncio.create_task(cache.get_or_compute("k", compute, ttl=60)) for _ in range(9)]
    await asyncio.sleep(0)
    unblock.set()

    results = await asyncio.gather(first, *others)

    assert results == [99] * 10
    assert calls == 1
    assert cache.metrics.coalesced == 9
    assert cache.key_state("k") == KeyState.FRESH


@pytest.mark.asyncio
async def test_failure_reaches_every_awaiter_and_is_not_cached(cache):
    unblock = asyncio.Event()
    error = RuntimeError("boom")

    async def failing():
        await unblock.wait()
        raise error

    tasks = [asyncio.create_task(cache.get_or_compute("k", failing, ttl=60)) for _ in range(3)]
    await asyncio.sleep(0)
    unblock.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(result is error for result in results)
    assert cache.key_state("k") == KeyState.ABSENT
    assert cache.metrics.failures == 1

    compute = AsyncMock(return_value=7)
    assert await cache.get_or_compute("k", compute, ttl=60) == 7
    assert compute.await_count == 1


@pytest.mark.asyncio
async def test_invalidate_forces_recompute(cache):
    compute = AsyncMock(side_effect=[1, 2])

    assert await cache.get_or_compute("k", compute, ttl=300) == 1
    assert cache.invalidate("k") is True
    assert cache.invalidate("k") is False
    assert cache.key_state("k") == KeyState.ABSENT
    assert await cache.get_or_compute("k", compute, ttl=300) == 2


@pytest.mark.asyncio
async def test_invalidate_during_computation_discards_write_back(cache):
    started = asyncio.Event()
    unblock = asyncio.Event()

    async def compute():
        started.set()
        await unblock.wait()
        return "value"

    task = asyncio.create_task(cache.get_or_compute("k", compute, ttl=300))
    await started.wait()
    cache.invalidate("k")
    unblock.set()

    assert await task == "value"
    assert cache.get("k") is None
    assert cache.key_state("k") == KeyState.ABSENT
    assert cache.metrics.discarded == 1


@pytest.mark.asyncio
async def test_call_after_invalidation_does_not_join_old_computation(cache):
    version = "before-write"
    started = asyncio.Event()
    release_first = asyncio.Event()
    calls = 0

    async def compute():
        nonlocal calls
        calls += 1
        seen = version
        if calls == 1:
            started.set()
            await release_first.wait()
        return seen

    first = asyncio.create_task(cache.get_or_compute("k", compute, ttl=300))
    await started.wait()

    version = "after-write"
    cache.invalidate("k")
    assert cache.key_state("k") == KeyState.ABSENT

    assert await cache.get_or_compute("k", compute, ttl=300) == "after-write"

    release_first.set()
    assert await first == "before-write"
    assert calls == 2
    assert cache.get("k") == "after-write"
    assert cache.metrics.discarded == 1
    assert cache.get_stats()["in_flight"] == 0


@pytest.mark.asyncio
async def test_revalidation_during_computation_starts_new_computation(cache):
    started = asyncio.Event()
    release_first = asyncio.Event()
    compute_second = AsyncMock(return_value="fresh")

    async def compute_first():
        started.set()
        await release_first.wait()
        return "stale"

    first = asyncio.create_task(cache.get_or_compute("k", compute_first, ttl=300, tags=("examtracker",)))
    await started.wait()
    cache.on_invalidate("examtracker")

    assert await cache.get_or_compute("k", compute_second, ttl=300, tags=("examtracker",)) == "fresh"
    release_first.set()
    assert await first == "stale"
    assert cache.get("k") == "fresh"
    assert compute_second.await_count == 1


@pytest.mark.asyncio
async def test_revalidation_tag_drops_tagged_entries(cache):
    bus = RevalidationBus()
    bus.subscribe(cache.on_invalidate)

    await cache.get_or_compute("counts", AsyncMock(return_value=1), ttl=300, tags=("examtracker",))
    await cache.get_or_compute("other", AsyncMock(return_value=2), ttl=300, tags=("unrelated",))

    event = bus.publish("examtracker")

    assert event.keys_removed == 1
    assert cache.get("counts") is None
    assert cache.get("other") == 2


@pytest.mark.asyncio
async def test_invalidate_all(cache):
    await cache.get_or_compute("a", AsyncMock(return_value=1), ttl=300)
    await cache.get_or_compute("b", AsyncMock(return_value=2), ttl=300)

    assert cache.invalidate_all() == 2
    assert cache.invalidate_all() == 0
    assert cache.get_stats()["total_entries"] == 0


@pytest.mark.asyncio
async def test_round_trip_returns_computed_value(cache):
    value = {"years": ["2024", "2023"]}
    assert await cache.get_or_compute("k", AsyncMock(return_value=value), ttl=60) == value
    assert cache.get("k") == value


@pytest.mark.asyncio
async def test_non_positive_ttl_is_rejected(cache):
    with pytest.raises(ValueError):
        await cache.get_or_compute("k", AsyncMock(return_value=1), ttl=0)


@pytest.mark.asyncio
async def test_coalescer_releases_marker_after_failure():
    coalescer = InFlightCoalescer()

    async def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await coalescer.run("k", failing, lambda marker, value: None)

    assert "k" not in coalescer
    assert coalescer.in_flight_count == 0


def test_create_builds_in_memory_store():
    cache = ReadThroughCache.create(max_entries=5)
    assert isinstance(cache.store, InMemoryCacheRepository)
    assert cache.get_stats()["in_flight"] == 0


@pytest.mark.asyncio
async def test_coalescer_discard_leaves_running_task_alone():
    coalescer = InFlightCoalescer()
    release = asyncio.Event()
    written = []

    async def compute():
        await release.wait()
        return "value"

    def on_success(marker, value):
        written.append(coalescer.is_current(marker))

    task = asyncio.create_task(coalescer.run("k", compute, on_success))
    await asyncio.sleep(0)
    assert coalescer.discard("k") is True
    assert coalescer.discard("k") is False

    release.set()
    assert await task == "value"
    assert written == [False]
    assert coalescer.in_flight_count == 0
