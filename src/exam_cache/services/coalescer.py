"""Single-flight coalescing of concurrent computations per key.

Concurrent callers asking for the same key share one asyncio task
instead of each starting their own computation. The task removes its
own registry entry when it settles, success or failure, so a failed
computation is never replayed to later callers.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class InFlightMarker:
    """A running computation registered for a key."""

    key: str
    task: asyncio.Task


class InFlightCoalescer:
    """Registry of at most one running computation per key.

    The check-then-register step in ``run`` contains no ``await``, which
    makes it atomic on a single event loop.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, InFlightMarker] = {}

    def get(self, key: str) -> InFlightMarker | None:
        return self._in_flight.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._in_flight

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def join(self, marker: InFlightMarker) -> Any:
        """Await an already running computation.

        Shielded: cancelling the caller does not cancel the shared task.
        """
        return await asyncio.shield(marker.task)

    def is_current(self, marker: InFlightMarker) -> bool:
        """Whether ``marker`` is still the registered computation for its key."""
        return self._in_flight.get(marker.key) is marker

    def discard(self, key: str) -> bool:
        """Unregister the computation for ``key`` without cancelling it.

        Callers already awaiting it still get its result; the next caller
        starts a new computation.

        Returns:
            True if a computation was registered
        """
        return self._in_flight.pop(key, None) is not None

    def discard_all(self) -> int:
        """Unregister every running computation.

        Returns:
            Number of computations unregistered
        """
        count = len(self._in_flight)
        self._in_flight.clear()
        return count

    async def run(
        self,
        key: str,
        compute_fn: Callable[[], Awaitable[Any]],
        on_success: Callable[[InFlightMarker, Any], None],
    ) -> Any:
        """Start a computation for ``key`` and await its result.

        Args:
            key: The cache key being computed
            compute_fn: Zero-argument coroutine function producing the value
            on_success: Called with the marker and value before the marker
                is released

        Returns:
            The computed value

        Raises:
            RuntimeError: If a computation for ``key`` is already registered
        """
        if key in self._in_flight:
            raise RuntimeError(f"Computation already in flight for {key}")

        marker = InFlightMarker(key=key, task=None)  # type: ignore[arg-type]
        marker.task = asyncio.ensure_future(self._execute(marker, compute_fn, on_success))
        self._in_flight[key] = marker
        return await asyncio.shield(marker.task)

    async def _execute(
        self,
        marker: InFlightMarker,
        compute_fn: Callable[[], Awaitable[Any]],
        on_success: Callable[[InFlightMarker, Any], None],
    ) -> Any:
        try:
            value = await compute_fn()
            on_success(marker, value)
            return value
        finally:
            if self.is_current(marker):
                del self._in_flight[marker.key]
