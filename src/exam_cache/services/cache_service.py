"""Read-through cache service.

This service coordinates the cache store (fresh/stale lookups) and the
in-flight coalescer (one computation per key) behind a single
``get_or_compute`` entry point, and owns invalidation.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from exam_cache.entities import KeyState
from exam_cache.models import CacheMetrics
from exam_cache.protocols import CacheStore
from exam_cache.repositories import InMemoryCacheRepository

from .coalescer import InFlightCoalescer, InFlightMarker

logger = logging.getLogger(__name__)


class ReadThroughCache:
    """TTL-based read-through cache with per-key request coalescing.

    Per-key lifecycle::

        ABSENT -> COMPUTING -> FRESH -> STALE -> COMPUTING -> FRESH ...
        COMPUTING -> ABSENT        (computation failed or invalidated, nothing cached)
        FRESH | STALE -> ABSENT    (explicit invalidation)

    Instances are constructed explicitly and injected where needed, so
    every test can work against its own independent cache.

    Example:
        ```python
        cache = ReadThroughCache.create()

        async def compute():
            return await aggregator.chapter_counts(query)

        counts = await cache.get_or_compute(query.cache_key, compute, ttl=300)
        ```
    """

    def __init__(self, store: CacheStore, coalescer: InFlightCoalescer | None = None) -> None:
        """Initialize the cache service.

        Args:
            store: Cache storage backend (required).
            coalescer: In-flight registry. Defaults to a fresh one.
        """
        self._store = store
        self._coalescer = coalescer or InFlightCoalescer()
        self._metrics = CacheMetrics()

    @classmethod
    def create(
        cls,
        clock: Callable[[], float] | None = None,
        max_entries: int | None = None,
    ) -> "ReadThroughCache":
        """Factory method to create a cache over an in-memory store.

        Args:
            clock: Time source in seconds. If None, uses time.monotonic.
            max_entries: Entry bound. If None, uses settings.

        Returns:
            Configured ReadThroughCache
        """
        return cls(store=InMemoryCacheRepository.create(clock=clock, max_entries=max_entries))

    async def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], Awaitable[Any]],
        ttl: float,
        tags: Iterable[str] = (),
    ) -> Any:
        """Return the cached value for ``key``, computing it on miss.

        1. Fresh hit: return the cached value, ``compute_fn`` is not called.
        2. A computation for ``key`` is running: await its result.
        3. Otherwise start ``compute_fn``, register it, cache the value on
           success with ``ttl`` and ``tags``.

        A failed computation propagates the same exception to every
        awaiter and leaves nothing cached.

        Args:
            key: Cache key (see keys.derive_key)
            compute_fn: Zero-argument coroutine function producing the value
            ttl: Time-to-live in seconds
            tags: Invalidation tags for the stored entry

        Returns:
            The cached or freshly computed value
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        lookup = self._store.get(key)
        if lookup is not None and lookup.is_fresh:
            self._metrics.hits += 1
            logger.debug("Cache hit for %s", key)
            return lookup.value

        self._metrics.misses += 1
        marker = self._coalescer.get(key)
        if marker is not None:
            self._metrics.coalesced += 1
            logger.debug("Joining in-flight computation for %s", key)
            return await self._coalescer.join(marker)

        if lookup is not None:
            self._metrics.stale_refreshes += 1
            logger.info("Refreshing stale entry %s", key)
        else:
            logger.info("Computing %s", key)

        tags = frozenset(tags)
        self._metrics.computations += 1

        def on_success(done: InFlightMarker, value: Any) -> None:
            # Invalidation unregisters the marker
            if not self._coalescer.is_current(done):
                self._metrics.discarded += 1
                logger.info("Discarding result for %s invalidated mid-computation", done.key)
                return
            self._store.put(done.key, value, ttl, tags)

        try:
            return await self._coalescer.run(key, compute_fn, on_success)
        except Exception as e:
            self._metrics.failures += 1
            logger.warning("Computation for %s failed: %s", key, e)
            raise

    def get(self, key: str) -> Any | None:
        """Return the fresh cached value for ``key`` or None, never computing."""
        lookup = self._store.get(key)
        if lookup is None or not lookup.is_fresh:
            return None
        return lookup.value

    def key_state(self, key: str) -> KeyState:
        """Report the lifecycle state of a key."""
        if key in self._coalescer:
            return KeyState.COMPUTING
        lookup = self._store.get(key)
        if lookup is None:
            return KeyState.ABSENT
        return KeyState.FRESH if lookup.is_fresh else KeyState.STALE

    def invalidate(self, key: str) -> bool:
        """Drop one key so the next lookup recomputes.

        Idempotent; a computation already running for the key still
        answers its current awaiters but is not written back, and later
        callers start a new computation instead of joining it.

        Returns:
            True if a stored entry was removed
        """
        self._coalescer.discard(key)
        removed = self._store.invalidate(key)
        logger.info("Invalidated %s (removed=%s)", key, removed)
        return removed

    def invalidate_all(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries removed
        """
        self._coalescer.discard_all()
        count = self._store.invalidate_all()
        logger.info("Invalidated all entries (%d removed)", count)
        return count

    def on_invalidate(self, tag: str) -> int:
        """Revalidation callback: drop every entry carrying ``tag``.

        Computations running while the tag is revalidated are discarded
        too, since their tags are only known once they finish.

        Returns:
            Number of entries removed
        """
        self._coalescer.discard_all()
        count = self._store.invalidate_tag(tag)
        logger.info("Revalidated tag %s (%d removed)", tag, count)
        return count

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with store stats, in-flight count and metrics
        """
        stats = self._store.get_stats()
        stats["in_flight"] = self._coalescer.in_flight_count
        stats["metrics"] = self._metrics.to_dict()
        return stats

    @property
    def metrics(self) -> CacheMetrics:
        return self._metrics

    @property
    def store(self) -> CacheStore:
        """Get the underlying store (for testing)."""
        return self._store
