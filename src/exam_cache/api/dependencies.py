"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - A table store placed on app.state before start-up is used as-is
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from exam_cache.config import Settings, settings
from exam_cache.handlers import AggregateHandler
from exam_cache.protocols import TableStore
from exam_cache.repositories import InMemoryTableStore, PostgRESTTableStore
from exam_cache.services import Aggregator, QuestionBankService, ReadThroughCache, RevalidationBus

logger = logging.getLogger(__name__)


def build_table_store(config: Settings) -> TableStore:
    """Create the table store selected by STORE_BACKEND."""
    if config.store_backend == "memory":
        return InMemoryTableStore()
    return PostgRESTTableStore.create()


def get_handler(request: Request) -> AggregateHandler:
    """Dependency injection for AggregateHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "aggregate_handler", None)
    if handler is None:
        raise RuntimeError("AggregateHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Table store (remote rows) - app.state.table_store
    2. Read-through cache subscribed to the revalidation bus
    3. Service (business logic) - app.state.question_bank
    4. Handler (HTTP endpoints) - app.state.aggregate_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes a store created here and removes services from app.state
    """
    config: Settings = getattr(app.state, "settings", None) or settings

    table_store = getattr(app.state, "table_store", None)
    owns_store = table_store is None
    if owns_store:
        table_store = build_table_store(config)

    cache = ReadThroughCache.create(max_entries=config.cache_max_entries)
    aggregator = Aggregator(
        store=table_store,
        table=config.store_table,
        page_size=config.aggregate_page_size,
    )
    question_bank = QuestionBankService.create(cache=cache, aggregator=aggregator, config=config)

    revalidation_bus = RevalidationBus()
    revalidation_bus.subscribe(cache.on_invalidate)

    aggregate_handler = AggregateHandler(
        question_bank=question_bank,
        revalidation_bus=revalidation_bus,
        table_store=table_store,
        config=config,
    )

    app.state.table_store = table_store
    app.state.cache = cache
    app.state.question_bank = question_bank
    app.state.revalidation_bus = revalidation_bus
    app.state.aggregate_handler = aggregate_handler

    logger.info(
        "Exam cache initialized (backend=%s, table=%s, page_size=%d)",
        config.store_backend,
        config.store_table,
        aggregator.page_size,
    )

    yield

    revalidation_bus.unsubscribe(cache.on_invalidate)
    if owns_store and isinstance(table_store, PostgRESTTableStore):
        await table_store.close()

    del app.state.aggregate_handler
    del app.state.revalidation_bus
    del app.state.question_bank
    del app.state.cache
    if owns_store:
        del app.state.table_store
    logger.info("Exam cache shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[AggregateHandler, Depends(get_handler)]
