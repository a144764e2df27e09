"""In-memory implementation of CacheStore.

Entries live in a plain dict for the lifetime of the owning cache
object. Nothing is evicted on expiry: stale entries stay until they are
overwritten or invalidated.
"""

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from exam_cache.config import settings
from exam_cache.entities import CacheEntry, CacheLookup

logger = logging.getLogger(__name__)


class InMemoryCacheRepository:
    """Dict-backed cache store with tag indexing.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        store = InMemoryCacheRepository.create()
        store.put("k", {"easy": 2}, ttl=300)
        store.get("k")  # CacheLookup(value={"easy": 2}, is_fresh=True)
        ```
    """

    def __init__(
        self,
        clock: Callable[[], float] | None = None,
        max_entries: int | None = None,
    ) -> None:
        """Initialize the in-memory store.

        Args:
            clock: Returns the current time in seconds. Defaults to time.monotonic.
            max_entries: Upper bound on entries; 0 or None keeps the store unbounded.
        """
        self._clock = clock or time.monotonic
        self._max_entries = max_entries or 0
        self._entries: dict[str, CacheEntry] = {}
        self._tags: dict[str, set[str]] = {}

    @classmethod
    def create(
        cls,
        clock: Callable[[], float] | None = None,
        max_entries: int | None = None,
    ) -> "InMemoryCacheRepository":
        """Factory method to create InMemoryCacheRepository with defaults.

        Args:
            clock: Time source in seconds. If None, uses time.monotonic.
            max_entries: Entry bound. If None, uses settings.

        Returns:
            Configured InMemoryCacheRepository
        """
        if max_entries is None:
            max_entries = settings.cache_max_entries
        return cls(clock=clock, max_entries=max_entries)

    def now(self) -> float:
        """Current reading of the store's clock."""
        return self._clock()

    def get(self, key: str) -> CacheLookup | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return CacheLookup(value=entry.value, is_fresh=entry.is_fresh(self._clock()))

    def put(self, key: str, value: Any, ttl: float, tags: Iterable[str] = ()) -> None:
        self._drop(key)

        entry = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=ttl,
            tags=frozenset(tags),
        )
        self._entries[key] = entry
        for tag in entry.tags:
            self._tags.setdefault(tag, set()).add(key)

        if self._max_entries and len(self._entries) > self._max_entries:
            self._evict_oldest()

    def invalidate(self, key: str) -> bool:
        return self._drop(key)

    def invalidate_tag(self, tag: str) -> int:
        keys = list(self._tags.get(tag, ()))
        for key in keys:
            self._drop(key)
        self._tags.pop(tag, None)
        return len(keys)

    def invalidate_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        self._tags.clear()
        return count

    def count_all(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def get_stats(self) -> dict:
        now = self._clock()
        fresh = sum(1 for entry in self._entries.values() if entry.is_fresh(now))
        return {
            "backend": "memory",
            "total_entries": len(self._entries),
            "fresh_entries": fresh,
            "stale_entries": len(self._entries) - fresh,
            "max_entries": self._max_entries,
            "tags": sorted(self._tags),
        }

    def _drop(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            keys = self._tags.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tags[tag]
        return True

    def _evict_oldest(self) -> None:
        oldest = min(self._entries.values(), key=lambda entry: entry.created_at)
        self._drop(oldest.key)
        logger.debug("Evicted %s (max_entries=%d)", oldest.key, self._max_entries)
