"""
Shared fixtures for the exam cache tests.
"""

import pytest

from exam_cache.repositories import InMemoryCacheRepository, InMemoryTableStore
from exam_cache.services import Aggregator, ReadThroughCache

TABLE = "examtracker"


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory cache store on the fake clock, unbounded."""
    return InMemoryCacheRepository(clock=clock, max_entries=0)


@pytest.fixture
def cache(store):
    return ReadThroughCache(store=store)


@pytest.fixture
def table_store():
    return InMemoryTableStore()


@pytest.fixture
def aggregator(table_store):
    return Aggregator(store=table_store, table=TABLE, page_size=1000)
