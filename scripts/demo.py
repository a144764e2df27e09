#!/usr/bin/env python3
"""
Demo script for the exam cache.

Runs the cached aggregates against an in-memory question bank and shows
misses, hits, request coalescing and tag revalidation. No remote store
is needed.
"""

import asyncio
import random
import time

from exam_cache.entities import ChapterCountsQuery, ExamCategoriesQuery
from exam_cache.repositories import InMemoryTableStore
from exam_cache.services import (
    QUESTION_BANK_TAG,
    Aggregator,
    QuestionBankService,
    ReadThroughCache,
    RevalidationBus,
)

TABLE = "examtracker"


class SlowTableStore(InMemoryTableStore):
    """In-memory store with a simulated network round trip per call."""

    async def select(self, *args, **kwargs):
        await asyncio.sleep(0.05)
        return await super().select(*args, **kwargs)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def build_question_bank(rows: int = 2500) -> SlowTableStore:
    rng = random.Random(7)
    chapters = ["Arithmetic", "Algebra", "Geometry", "Graphs", "Trees"]
    categories = ["CAT", "GATE-CSE"]
    store = SlowTableStore()
    store.add_rows(
        TABLE,
        [
            {
                "_id": i,
                "category": rng.choice(categories),
                "chapter": rng.choice(chapters),
                "difficulty": rng.choice(["easy", "medium", "hard"]),
            }
            for i in range(rows)
        ],
    )
    return store


async def timed(label: str, coro) -> object:
    start = time.perf_counter()
    result = await coro
    print(f"  {label:<40} {(time.perf_counter() - start) * 1000:8.1f} ms")
    return result


async def main() -> None:
    store = build_question_bank()
    cache = ReadThroughCache.create()
    service = QuestionBankService.create(
        cache=cache,
        aggregator=Aggregator(store=store, table=TABLE, page_size=1000),
    )
    bus = RevalidationBus()
    bus.subscribe(cache.on_invalidate)

    query = ChapterCountsQuery(category="cat", chapter="Graphs")

    print_section("Miss, then hit")
    counts = await timed("first request (3 pages scanned)", service.chapter_counts(query))
    await timed("second request (cache hit)", service.chapter_counts(ChapterCountsQuery("CAT", "graphs")))
    print(f"  counts={counts.counts} total={counts.total}")

    print_section("Coalescing concurrent requests")
    cache.invalidate(query.cache_key)
    before = len(store.select_calls)
    await timed(
        "20 concurrent requests",
        asyncio.gather(*(service.chapter_counts(query) for _ in range(20))),
    )
    print(f"  store selects issued: {len(store.select_calls) - before}")

    print_section("Tag revalidation")
    await service.exam_categories(ExamCategoriesQuery())
    event = bus.publish(QUESTION_BANK_TAG)
    print(f"  revalidated '{event.tag}', {event.keys_removed} entries removed")

    print_section("Statistics")
    for name, value in cache.get_stats()["metrics"].items():
        print(f"  {name:<16} {value}")


if __name__ == "__main__":
    asyncio.run(main())
