"""In-memory implementation of TableStore.

Holds rows per table in lists and answers selects, counts and stored
procedure calls from them. Used by the demo, local development
(STORE_BACKEND=memory) and the test suite. Records every call so tests
can assert on pagination behaviour.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from exam_cache.errors import UpstreamFetchError
from exam_cache.protocols import Filters

Procedure = Callable[[Mapping[str, Any]], Awaitable[list[dict[str, Any]]]]


def _matches(row: Mapping[str, Any], filters: Filters) -> bool:
    for column, value in filters.items():
        if value is None:
            if row.get(column) is None:
                return False
        elif row.get(column) != value:
            return False
    return True


class InMemoryTableStore:
    """TableStore backed by Python lists.

    Example:
        ```python
        store = InMemoryTableStore({"examtracker": [{"chapter": "Graphs"}]})
        await store.select("examtracker", ["chapter"], {}, (0, 999))
        ```
    """

    def __init__(self, tables: Mapping[str, list[dict[str, Any]]] | None = None) -> None:
        self._tables: dict[str, list[dict[str, Any]]] = {
            name: list(rows) for name, rows in (tables or {}).items()
        }
        self._procedures: dict[str, Procedure] = {}
        self.calls: list[tuple[str, str, Any]] = []
        # Raise on the n-th select (0-based) when set
        self.fail_on_select: int | None = None

    def add_rows(self, table: str, rows: Sequence[dict[str, Any]]) -> None:
        self._tables.setdefault(table, []).extend(rows)

    def register_procedure(self, name: str, procedure: Procedure) -> None:
        self._procedures[name] = procedure

    @property
    def select_calls(self) -> list[tuple[int, int]]:
        return [args for op, _, args in self.calls if op == "select"]

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        filters: Filters,
        range_: tuple[int, int],
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        if self.fail_on_select is not None and len(self.select_calls) == self.fail_on_select:
            self.calls.append(("select", table, range_))
            raise UpstreamFetchError(f"Simulated failure on {table}", table=table, operation="select")
        self.calls.append(("select", table, range_))

        rows = [row for row in self._tables.get(table, []) if _matches(row, filters)]
        if order:
            rows.sort(key=lambda row: (row.get(order) is None, row.get(order)))
        first, last = range_
        return [{column: row.get(column) for column in columns} for row in rows[first : last + 1]]

    async def count(self, table: str, filters: Filters) -> int:
        self.calls.append(("count", table, dict(filters)))
        return sum(1 for row in self._tables.get(table, []) if _matches(row, filters))

    async def rpc(self, name: str, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        self.calls.append(("rpc", name, dict(params)))
        procedure = self._procedures.get(name)
        if procedure is None:
            raise UpstreamFetchError(f"Unknown procedure {name}", table=name, operation="rpc")
        return await procedure(params)

    async def is_available(self) -> bool:
        return True
