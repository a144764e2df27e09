"""Remote table store protocol.

Defines the capabilities the aggregator needs from the external
question bank: filtered selects with inclusive row ranges, exact row
counts, and stored procedure calls.

Implementations can include:
- PostgREST / Supabase REST over HTTP (default)
- In-memory rows (local development and tests)
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

# column -> value; None means "column is not null"
Filters = Mapping[str, Any]


@runtime_checkable
class TableStore(Protocol):
    """Protocol for the external table store.

    All methods raise UpstreamFetchError on failure.
    """

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        filters: Filters,
        range_: tuple[int, int],
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """Select rows matching equality filters.

        Args:
            table: Table name
            columns: Columns to return
            filters: Equality filters; a None value selects non-null rows
            range_: Inclusive (first, last) row positions
            order: Optional column to order by, ascending

        Returns:
            The rows in the requested window (may be shorter or empty)
        """
        ...

    async def count(self, table: str, filters: Filters) -> int:
        """Count rows matching equality filters exactly."""
        ...

    async def rpc(self, name: str, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Invoke a stored procedure by name.

        Args:
            name: Procedure name
            params: Named parameters

        Returns:
            The rows returned by the procedure
        """
        ...

    async def is_available(self) -> bool:
        """Check if the store is reachable."""
        ...
