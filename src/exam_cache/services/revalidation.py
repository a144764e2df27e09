"""Tag-based revalidation events.

Content-mutation paths publish a tag after writing to the question bank;
caches subscribe with their ``on_invalidate`` callback.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Tag shared by every aggregate computed from the question bank table
QUESTION_BANK_TAG = "examtracker"
CATEGORIES_TAG = "exam-categories"


@dataclass(frozen=True)
class RevalidationEvent:
    """Emitted when a tag is revalidated."""

    tag: str
    keys_removed: int = 0


class RevalidationBus:
    """Fan-out of revalidation tags to subscribed callbacks."""

    def __init__(self) -> None:
        self._subscribers: list[Callable[[str], int]] = []

    def subscribe(self, callback: Callable[[str], int]) -> None:
        """Register a callback receiving a tag and returning removed entries."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[str], int]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, tag: str) -> RevalidationEvent:
        """Deliver ``tag`` to every subscriber.

        Args:
            tag: The revalidation tag

        Returns:
            RevalidationEvent with the total number of entries removed
        """
        removed = 0
        for callback in list(self._subscribers):
            removed += callback(tag)
        logger.info("Published revalidation for %s (%d entries removed)", tag, removed)
        return RevalidationEvent(tag=tag, keys_removed=removed)
