"""Service layer for business logic.

This layer contains the cache orchestration and the aggregate queries.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> QuestionBankService -> ReadThroughCache -> CacheStore
                                   -> Aggregator       -> TableStore

Usage:
    ```python
    from exam_cache.services import Aggregator, QuestionBankService, ReadThroughCache

    service = QuestionBankService.create(
        cache=ReadThroughCache.create(),
        aggregator=Aggregator(store=store),
    )
    ```
"""

from .aggregator import Aggregator
from .cache_service import ReadThroughCache
from .coalescer import InFlightCoalescer, InFlightMarker
from .question_bank_service import QuestionBankService
from .revalidation import CATEGORIES_TAG, QUESTION_BANK_TAG, RevalidationBus, RevalidationEvent

__all__ = [
    "Aggregator",
    "ReadThroughCache",
    "InFlightCoalescer",
    "InFlightMarker",
    "QuestionBankService",
    "RevalidationBus",
    "RevalidationEvent",
    "QUESTION_BANK_TAG",
    "CATEGORIES_TAG",
]
