"""Cache entry domain entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """Domain entity for a cached aggregate result.

    Attributes:
        key: The cache key (see keys.derive_key)
        value: The aggregated result
        created_at: Clock reading in seconds when the value was produced
        ttl: Validity duration in seconds
        tags: Invalidation tags attached to the entry
    """

    key: str
    value: Any
    created_at: float
    ttl: float
    tags: frozenset[str] = field(default_factory=frozenset)

    def is_fresh(self, now: float) -> bool:
        """Fresh while strictly less than ttl seconds have elapsed."""
        return now - self.created_at < self.ttl


@dataclass(frozen=True)
class CacheLookup:
    """Result of a cache store read."""

    value: Any
    is_fresh: bool


class KeyState(str, Enum):
    """Per-key lifecycle state."""

    ABSENT = "absent"
    COMPUTING = "computing"
    FRESH = "fresh"
    STALE = "stale"
