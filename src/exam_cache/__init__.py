"""Exam Cache - read-through aggregate cache for an exam question bank.

This package provides a layered architecture for cached aggregates:

Layers:
    - protocols: Interface contracts (CacheStore, TableStore)
    - repositories: Data access implementations
    - services: Cache orchestration, coalescing and aggregation
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from exam_cache.services import ReadThroughCache

    cache = ReadThroughCache.create()
    value = await cache.get_or_compute("chapter-counts:...", compute, ttl=300)
    ```

For HTTP API:
    ```python
    from exam_cache.api.app import app
    ```
"""

from exam_cache.config import get_settings, settings
from exam_cache.errors import (
    ExamCacheError,
    InvalidParameterError,
    PartialBatchError,
    UpstreamFetchError,
)
from exam_cache.handlers import AggregateHandler
from exam_cache.keys import derive_key, normalize_code, normalize_name
from exam_cache.protocols import CacheStore, TableStore
from exam_cache.repositories import InMemoryCacheRepository, InMemoryTableStore, PostgRESTTableStore
from exam_cache.services import (
    Aggregator,
    QuestionBankService,
    ReadThroughCache,
    RevalidationBus,
)

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Errors
    "ExamCacheError",
    "InvalidParameterError",
    "UpstreamFetchError",
    "PartialBatchError",
    # Keys
    "derive_key",
    "normalize_name",
    "normalize_code",
    # Protocols (interfaces)
    "CacheStore",
    "TableStore",
    # Services (business logic)
    "Aggregator",
    "QuestionBankService",
    "ReadThroughCache",
    "RevalidationBus",
    # Handlers (HTTP)
    "AggregateHandler",
    # Repositories (data access)
    "InMemoryCacheRepository",
    "InMemoryTableStore",
    "PostgRESTTableStore",
]
