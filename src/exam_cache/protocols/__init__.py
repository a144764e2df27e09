"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (PostgREST → in-memory, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .cache_store import CacheStore
from .table_store import Filters, TableStore

__all__ = [
    "CacheStore",
    "Filters",
    "TableStore",
]
