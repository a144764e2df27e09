"""Question bank service.

Binds each aggregate query to the read-through cache: the query derives
the key, the aggregator computes on miss, and the endpoint's TTL and
revalidation tags are applied to the stored entry.
"""

from typing import Any

from exam_cache.config import Settings, settings
from exam_cache.entities import (
    ChapterCounts,
    ChapterCountsQuery,
    ChapterQuestionsQuery,
    ChaptersBySubject,
    ChapterTopics,
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

from .aggregator import Aggregator
from .cache_service import ReadThroughCache
from .revalidation import CATEGORIES_TAG, QUESTION_BANK_TAG


class QuestionBankService:
    """Cached aggregate views over the question bank.

    Example:
        ```python
        service = QuestionBankService.create(
            cache=ReadThroughCache.create(),
            aggregator=Aggregator(store=PostgRESTTableStore.create()),
        )
        counts = await service.chapter_counts(ChapterCountsQuery("CAT", "Graphs"))
        ```
    """

    def __init__(
        self,
        cache: ReadThroughCache,
        aggregator: Aggregator,
        config: Settings | None = None,
    ) -> None:
        """Initialize the question bank service.

        Args:
            cache: The read-through cache (required).
            aggregator: Aggregate query runner (required).
            config: Settings providing per-endpoint TTLs. Defaults to settings.
        """
        self._cache = cache
        self._aggregator = aggregator
        self._config = config or settings

    @classmethod
    def create(
        cls,
        cache: ReadThroughCache,
        aggregator: Aggregator,
        config: Settings | None = None,
    ) -> "QuestionBankService":
        """Factory method to create QuestionBankService.

        Args:
            cache: The read-through cache (required).
            aggregator: Aggregate query runner (required).
            config: Settings. If None, uses global settings.

        Returns:
            Configured QuestionBankService
        """
        return cls(cache=cache, aggregator=aggregator, config=config)

    async def chapter_counts(self, query: ChapterCountsQuery) -> ChapterCounts:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.chapter_counts(query),
            ttl=self._config.cache_ttl_chapter_counts,
            tags=(QUESTION_BANK_TAG,),
        )

    async def chapter_questions(self, query: ChapterQuestionsQuery) -> QuestionPage:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.chapter_questions(query),
            ttl=self._config.cache_ttl_chapter_questions,
            tags=(QUESTION_BANK_TAG,),
        )

    async def subjects_with_topics(self, query: SubtopicsQuery) -> list[SubjectTopics]:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.subjects_with_topics(query),
            ttl=self._config.cache_ttl_subtopics,
            tags=(QUESTION_BANK_TAG,),
        )

    async def chapters_by_subject(self, query: ChaptersBySubjectQuery) -> ChaptersBySubject:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.chapters_by_subject(query),
            ttl=self._config.cache_ttl_chapters,
            tags=(QUESTION_BANK_TAG,),
        )

    async def topics_by_chapter(self, query: TopicsByChapterQuery) -> ChapterTopics:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.topics_by_chapter(query),
            ttl=self._config.cache_ttl_topics,
            tags=(QUESTION_BANK_TAG,),
        )

    async def topic_summary(self, query: TopicSummaryQuery) -> TopicSummary:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.topic_summary(query),
            ttl=self._config.cache_ttl_topic_summary,
            tags=(QUESTION_BANK_TAG,),
        )

    async def question_years(self, query: QuestionYearsQuery) -> list[Any]:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.question_years(query),
            ttl=self._config.cache_ttl_question_years,
            tags=(QUESTION_BANK_TAG,),
        )

    async def year_data(self, query: YearDataQuery) -> list[dict[str, Any]]:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.year_data(query),
            ttl=self._config.cache_ttl_year_data,
            tags=(QUESTION_BANK_TAG,),
        )

    async def question_total(self, query: QuestionTotalQuery) -> int:
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.question_total(query),
            ttl=self._config.cache_ttl_question_total,
            tags=(QUESTION_BANK_TAG,),
        )

    async def exam_categories(self, query: ExamCategoriesQuery | None = None) -> list[ExamCategory]:
        query = query or ExamCategoriesQuery()
        return await self._cache.get_or_compute(
            query.cache_key,
            lambda: self._aggregator.exam_categories(query),
            ttl=self._config.cache_ttl_categories,
            tags=(CATEGORIES_TAG, QUESTION_BANK_TAG),
        )

    def ttl_for(self, namespace: str) -> float:
        """TTL in seconds for a query namespace (used for Cache-Control)."""
        ttls = {
            ChapterCountsQuery.namespace: self._config.cache_ttl_chapter_counts,
            ChapterQuestionsQuery.namespace: self._config.cache_ttl_chapter_questions,
            SubtopicsQuery.namespace: self._config.cache_ttl_subtopics,
            ChaptersBySubjectQuery.namespace: self._config.cache_ttl_chapters,
            QuestionYearsQuery.namespace: self._config.cache_ttl_question_years,
            YearDataQuery.namespace: self._config.cache_ttl_year_data,
            QuestionTotalQuery.namespace: self._config.cache_ttl_question_total,
            ExamCategoriesQuery.namespace: self._config.cache_ttl_categories,
            TopicsByChapterQuery.namespace: self._config.cache_ttl_topics,
            TopicSummaryQuery.namespace: self._config.cache_ttl_topic_summary,
        }
        return ttls[namespace]

    @property
    def cache(self) -> ReadThroughCache:
        return self._cache
