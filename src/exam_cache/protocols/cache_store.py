"""Cache storage protocol.

Defines the interface for the key/value store that backs the
read-through cache. Reads and writes are synchronous: they must never
suspend the event loop, so a lookup is always a pure read against the
current snapshot.

Implementations can include:
- In-process memory (default)
- Any other store whose get/put do not block
"""

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from exam_cache.entities import CacheLookup


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Any type that implements these methods satisfies the protocol,
    no explicit inheritance needed.

    Example:
        ```python
        from exam_cache.protocols import CacheStore

        store: CacheStore = InMemoryCacheRepository()
        ```
    """

    def get(self, key: str) -> CacheLookup | None:
        """Look up a key without side effects.

        Args:
            key: The cache key

        Returns:
            CacheLookup with the value and its freshness, or None if absent
        """
        ...

    def put(self, key: str, value: Any, ttl: float, tags: Iterable[str] = ()) -> None:
        """Store a value, unconditionally overwriting any previous entry.

        Args:
            key: The cache key
            value: The value to cache
            ttl: Time-to-live in seconds
            tags: Invalidation tags for the entry
        """
        ...

    def invalidate(self, key: str) -> bool:
        """Remove one entry.

        Returns:
            True if an entry was removed, False otherwise
        """
        ...

    def invalidate_tag(self, tag: str) -> int:
        """Remove every entry carrying a tag.

        Returns:
            Number of entries removed
        """
        ...

    def invalidate_all(self) -> int:
        """Remove all entries.

        Returns:
            Number of entries removed
        """
        ...

    def count_all(self) -> int:
        """Count entries currently held, fresh or stale."""
        ...

    def get_stats(self) -> dict:
        """Get store statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...
