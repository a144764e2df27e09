"""Repository layer for data access.

This layer abstracts external dependencies (the remote table store and
the cache storage) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (PostgREST → in-memory, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from exam_cache.protocols import CacheStore, TableStore

from .memory_repository import InMemoryCacheRepository
from .memory_table_store import InMemoryTableStore
from .postgrest_repository import PostgRESTTableStore

__all__ = [
    "CacheStore",
    "TableStore",
    "InMemoryCacheRepository",
    "InMemoryTableStore",
    "PostgRESTTableStore",
]
