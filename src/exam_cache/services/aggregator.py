"""Aggregator: bounded paginated scans of the question bank.

Fetches every matching row in fixed-size sequential pages, validates
each row against its endpoint schema, then hands the full list to a
pure reducer. Nothing partial ever leaves this module: a failing page
aborts the whole scan.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from exam_cache.config import settings
from exam_cache.entities import (
    ChapterCounts,
    ChapterCountsQuery,
    ChapterTopics,
    ChapterQuestionsQuery,
    ChaptersBySubject,
    ChaptersBySubjectQuery,
    ExamCategoriesQuery,
    ExamCategory,
    QuestionPage,
    QuestionTotalQuery,
    QuestionYearsQuery,
    SubjectTopics,
    SubtopicsQuery,
    TopicsByChapterQuery,
    TopicSummary,
    TopicSummaryQuery,
    YearDataQuery,
)
from exam_cache.errors import PartialBatchError, UpstreamFetchError
from exam_cache.keys import normalize_code
from exam_cache.models import (
    CategoryRow,
    ChapterRow,
    DifficultyRow,
    QuestionMetaRow,
    QuestionRow,
    SubjectRow,
    TopicRow,
    TopicYearRow,
    YearRow,
)
from exam_cache.protocols import Filters, TableStore

from . import reducers

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)

YEAR_DATA_PROCEDURE = "get_year_data"


class Aggregator:
    """Runs aggregate queries against the remote table store.

    Example:
        ```python
        aggregator = Aggregator(store=PostgRESTTableStore.create())
        counts = await aggregator.chapter_counts(ChapterCountsQuery("CAT", "Graphs"))
        counts.total
        ```
    """

    def __init__(
        self,
        store: TableStore,
        table: str | None = None,
        page_size: int | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            store: Remote table store (required).
            table: Question bank table name. Defaults to settings.
            page_size: Rows per page request. Defaults to settings.
        """
        self._store = store
        self._table = table or settings.store_table
        self._page_size = page_size or settings.aggregate_page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def fetch_all(
        self,
        columns: Sequence[str],
        filters: Filters,
        row_model: type[RowT],
        order: str | None = None,
    ) -> list[RowT]:
        """Fetch every matching row in bounded sequential pages.

        Stops at the first page shorter than the page size (an empty page
        included), so exactly ``page_size`` matching rows cost two requests.

        Args:
            columns: Columns to select
            filters: Equality filters pushed to the store
            row_model: Schema each row is validated against
            order: Optional column to order by

        Returns:
            All matching rows, validated

        Raises:
            UpstreamFetchError: The first page failed or a row is malformed
            PartialBatchError: A later page failed after earlier ones succeeded
        """
        rows: list[RowT] = []
        offset = 0
        pages = 0
        while True:
            try:
                page = await self._store.select(
                    self._table,
                    columns,
                    filters,
                    (offset, offset + self._page_size - 1),
                    order=order,
                )
            except UpstreamFetchError as e:
                if pages == 0:
                    raise
                logger.error("Page %d of %s failed after %d rows", pages + 1, self._table, len(rows))
                raise PartialBatchError(
                    f"Scan of {self._table} aborted on page {pages + 1}: {e}",
                    pages_fetched=pages,
                    table=self._table,
                    operation="select",
                ) from e

            pages += 1
            rows.extend(self._validate(page, row_model))
            if len(page) < self._page_size:
                break
            offset += self._page_size

        logger.debug("Fetched %d rows from %s in %d pages", len(rows), self._table, pages)
        return rows

    async def chapter_counts(self, query: ChapterCountsQuery) -> ChapterCounts:
        rows = await self.fetch_all(
            ["difficulty", "chapter"],
            {"category": normalize_code(query.category)},
            QuestionMetaRow,
        )
        return reducers.chapter_counts(rows, query.chapter)

    async def chapter_questions(self, query: ChapterQuestionsQuery) -> QuestionPage:
        filters: dict[str, Any] = {"category": normalize_code(query.category)}
        if query.difficulty:
            filters["difficulty"] = query.difficulty
        rows = await self.fetch_all(
            [
                "_id",
                "question",
                "options_A",
                "options_B",
                "options_C",
                "options_D",
                "correct_option",
                "solution",
                "difficulty",
                "year",
                "subject",
                "chapter",
            ],
            filters,
            QuestionRow,
            order="_id",
        )
        return reducers.question_page(rows, query.chapter, query.page, query.limit)

    async def subjects_with_topics(self, query: SubtopicsQuery) -> list[SubjectTopics]:
        filters = {}
        if query.category:
            filters["category"] = normalize_code(query.category)
        rows = await self.fetch_all(["subject", "topic", "category"], filters, TopicRow)
        return reducers.subjects_with_topics(rows)

    async def chapters_by_subject(self, query: ChaptersBySubjectQuery) -> ChaptersBySubject:
        category = normalize_code(query.category)
        rows = await self.fetch_all(
            ["chapter", "category", "subject", "topic"],
            {"category": category},
            ChapterRow,
        )
        return reducers.chapters_by_subject(rows, category, query.subject)

    async def topics_by_chapter(self, query: TopicsByChapterQuery) -> ChapterTopics:
        category = normalize_code(query.category)
        rows = await self.fetch_all(
            ["topic", "category", "subject", "chapter"],
            {"category": category},
            ChapterRow,
        )
        return reducers.topics_by_chapter(rows, category, query.chapter, query.subject)

    async def topic_summary(self, query: TopicSummaryQuery) -> TopicSummary:
        """Difficulty counts and subjects of a topic, scanned concurrently."""
        filters = {"category": normalize_code(query.category), "topic": query.topic.strip()}
        difficulty_rows, subject_rows = await asyncio.gather(
            self.fetch_all(["difficulty"], filters, DifficultyRow),
            self.fetch_all(["subject"], {**filters, "subject": None}, SubjectRow),
        )
        return reducers.topic_summary(difficulty_rows, subject_rows)

    async def question_years(self, query: QuestionYearsQuery) -> list[Any]:
        rows = await self.fetch_all(
            ["topic", "year"],
            {
                "category": normalize_code(query.category),
                "difficulty": query.difficulty,
                "year": None,
            },
            TopicYearRow,
        )
        return reducers.distinct_years(rows, query.topic)

    async def exam_categories(self, query: ExamCategoriesQuery) -> list[ExamCategory]:
        rows = await self.fetch_all(["category"], {"category": None}, CategoryRow)
        return reducers.exam_categories(rows)

    async def year_data(self, query: YearDataQuery) -> list[dict[str, Any]]:
        """Year-wise data from the stored procedure, newest first."""
        raw = await self._store.rpc(YEAR_DATA_PROCEDURE, {"category_param": normalize_code(query.category)})
        rows = self._validate(raw, YearRow)
        ordered = sorted(rows, key=lambda row: reducers.year_sort_key(row.year))
        return [row.model_dump() for row in ordered]

    async def question_total(self, query: QuestionTotalQuery) -> int:
        return await self._store.count(self._table, {"category": normalize_code(query.category)})

    def _validate(self, page: list[dict[str, Any]], row_model: type[RowT]) -> list[RowT]:
        try:
            return [row_model.model_validate(row) for row in page]
        except ValidationError as e:
            raise UpstreamFetchError(
                f"Malformed {row_model.__name__} from {self._table}: {e}",
                table=self._table,
                operation="select",
            ) from e
