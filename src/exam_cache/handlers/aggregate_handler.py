"""HTTP handlers for aggregate and cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import hmac
import logging

from fastapi import HTTPException, status

from exam_cache.config import Settings, settings
from exam_cache.dto import (
    CacheStatsResponse,
    ChapterCountsResponse,
    ChapterItem,
    ChapterQuestionsResponse,
    ChaptersBySubjectResponse,
    ChapterTopicItem,
    ChapterTopicsData,
    DifficultyCounts,
    ExamCategoriesResponse,
    ExamCategoryItem,
    HealthCheckResponse,
    InvalidateKeyRequest,
    QuestionTotalResponse,
    QuestionYearsResponse,
    RevalidateRequest,
    RevalidateResponse,
    SubjectTopicsItem,
    SubtopicsResponse,
    TopicCountItem,
    TopicsByChapterResponse,
    TopicSummaryResponse,
    YearDataResponse,
)
from exam_cache.entities import (
    ChapterCountsQuery,
    ChapterQuestionsQuery,
    ChaptersBySubjectQuery,
    ExamCategoriesQuery,
    QuestionTotalQuery,
    QuestionYearsQuery,
    SubtopicsQuery,
    TopicsByChapterQuery,
    TopicSummaryQuery,
    YearDataQuery,
)
from exam_cache.errors import InvalidParameterError, UpstreamFetchError
from exam_cache.protocols import TableStore
from exam_cache.services import QuestionBankService, RevalidationBus

logger = logging.getLogger(__name__)

# stale-while-revalidate seconds where it differs from the TTL
STALE_WHILE_REVALIDATE = {
    ChapterCountsQuery.namespace: 60,
    ChapterQuestionsQuery.namespace: 60,
    ChaptersBySubjectQuery.namespace: 60,
    TopicsByChapterQuery.namespace: 60,
    TopicSummaryQuery.namespace: 300,
}


def _http_error(action: str, e: Exception) -> HTTPException:
    """Map a domain exception onto an HTTPException."""
    if isinstance(e, InvalidParameterError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, UpstreamFetchError):
        logger.error("%s: upstream failure: %s", action, e)
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{action}: {e}",
        )
    logger.exception("%s: unexpected error", action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{action}: {e}",
    )


class AggregateHandler:
    """HTTP handlers for the aggregate endpoints.

    This handler delegates business logic to QuestionBankService
    and handles HTTP-specific concerns like:
    - Building validated queries from query-string parameters
    - Converting entities to DTOs
    - Mapping domain errors to status codes

    Example:
        ```python
        handler = AggregateHandler(
            question_bank=service,
            revalidation_bus=bus,
            table_store=store,
        )

        @app.get("/questions/chapter/counts", response_model=ChapterCountsResponse)
        async def chapter_counts(category: str, chapter: str):
            return await handler.chapter_counts(category, chapter)
        ```
    """

    def __init__(
        self,
        question_bank: QuestionBankService,
        revalidation_bus: RevalidationBus,
        table_store: TableStore,
        config: Settings | None = None,
    ) -> None:
        """Initialize the aggregate handler.

        Args:
            question_bank: Cached aggregate service (required).
            revalidation_bus: Bus the cache is subscribed to (required).
            table_store: Remote store, pinged by the health check (required).
            config: Settings for the admin token. Defaults to settings.
        """
        self._service = question_bank
        self._bus = revalidation_bus
        self._store = table_store
        self._config = config or settings

    def cache_control(self, namespace: str) -> str:
        """Cache-Control header value for responses of a namespace."""
        ttl = int(self._service.ttl_for(namespace))
        swr = STALE_WHILE_REVALIDATE.get(namespace, ttl)
        return f"public, s-maxage={ttl}, stale-while-revalidate={swr}"

    async def chapter_counts(self, category: str | None, chapter: str | None) -> ChapterCountsResponse:
        """Handle GET /questions/chapter/counts requests."""
        try:
            counts = await self._service.chapter_counts(ChapterCountsQuery(category, chapter))
        except Exception as e:
            raise _http_error("Failed to count chapter questions", e) from e

        return ChapterCountsResponse(
            counts=DifficultyCounts(**counts.counts),
            total=counts.total,
            easy=counts.easy,
            medium=counts.medium,
            hard=counts.hard,
        )

    async def chapter_questions(
        self,
        category: str | None,
        chapter: str | None,
        difficulty: str | None,
        page: int,
        limit: int,
    ) -> ChapterQuestionsResponse:
        """Handle GET /questions/chapter requests.

        Args:
            category: Exam category code
            chapter: Chapter name, matched after normalization
            difficulty: Optional difficulty filter ('all' means none)
            page: 1-based page number
            limit: Page size (1-100)

        Returns:
            ChapterQuestionsResponse with the page and pagination info
        """
        try:
            query = ChapterQuestionsQuery(category, chapter, difficulty, page, limit)
            result = await self._service.chapter_questions(query)
        except Exception as e:
            raise _http_error("Failed to fetch chapter questions", e) from e

        return ChapterQuestionsResponse(
            questions=list(result.questions),
            has_more=result.has_more,
            total_count=result.total_count,
            current_page=result.current_page,
            total_pages=result.total_pages,
        )

    async def question_years(
        self,
        category: str | None,
        topic: str | None,
        difficulty: str | None,
    ) -> QuestionYearsResponse:
        """Handle GET /questions/years requests."""
        try:
            years = await self._service.question_years(QuestionYearsQuery(category, topic, difficulty))
        except Exception as e:
            raise _http_error("Failed to fetch question years", e) from e

        return QuestionYearsResponse(years=list(years))

    async def question_total(self, category: str | None) -> QuestionTotalResponse:
        try:
            query = QuestionTotalQuery(category)
            total = await self._service.question_total(query)
        except Exception as e:
            raise _http_error("Failed to count questions", e) from e

        return QuestionTotalResponse(category=query.category, total=total)

    async def subtopics(self, category: str | None) -> SubtopicsResponse:
        """Handle GET /allsubtopics requests."""
        try:
            subjects = await self._service.subjects_with_topics(SubtopicsQuery(category))
        except Exception as e:
            raise _http_error("Failed to fetch subtopics", e) from e

        return SubtopicsResponse(
            subjects_data=[
                SubjectTopicsItem(
                    subject=subject.subject,
                    subtopics=[
                        TopicCountItem(title=topic.title, count=topic.count, category=topic.category)
                        for topic in subject.subtopics
                    ],
                )
                for subject in subjects
            ]
        )

    async def chapters_by_subject(
        self, category: str | None, subject: str | None
    ) -> ChaptersBySubjectResponse:
        """Handle GET /chapters/by-subject requests."""
        try:
            result = await self._service.chapters_by_subject(ChaptersBySubjectQuery(category, subject))
        except Exception as e:
            raise _http_error("Failed to fetch chapters", e) from e

        return ChaptersBySubjectResponse(
            subject=result.subject,
            category=result.category,
            chapters=[
                ChapterItem(
                    title=chapter.title,
                    slug=chapter.slug,
                    count=chapter.count,
                    category=chapter.category,
                    subject=chapter.subject,
                )
                for chapter in result.chapters
            ],
            total_chapters=result.total_chapters,
            total_questions=result.total_questions,
        )

    async def topics_by_chapter(
        self, category: str | None, chapter: str | None, subject: str | None
    ) -> TopicsByChapterResponse:
        """Handle GET /topics/by-chapter requests."""
        try:
            result = await self._service.topics_by_chapter(TopicsByChapterQuery(category, chapter, subject))
        except Exception as e:
            raise _http_error("Failed to fetch chapter topics", e) from e

        return TopicsByChapterResponse(
            success=True,
            data=ChapterTopicsData(
                chapter_name=result.chapter_name,
                subject=result.subject,
                category=result.category,
                topics=[
                    ChapterTopicItem(
                        title=topic.title,
                        count=topic.count,
                        category=topic.category,
                        subject=topic.subject,
                        chapter=topic.chapter,
                    )
                    for topic in result.topics
                ],
                total_topics=result.total_topics,
                total_questions=result.total_questions,
            ),
        )

    async def topic_summary(self, category: str | None, topic: str | None) -> TopicSummaryResponse:
        """Handle GET /questions requests for a practice topic page."""
        try:
            summary = await self._service.topic_summary(TopicSummaryQuery(category, topic))
        except Exception as e:
            raise _http_error("Failed to fetch questions data", e) from e

        return TopicSummaryResponse(counts=DifficultyCounts(**summary.counts), subjects=list(summary.subjects))

    async def year_data(self, category: str | None) -> YearDataResponse:
        """Handle GET /year-wise requests."""
        try:
            rows = await self._service.year_data(YearDataQuery(category))
        except Exception as e:
            raise _http_error("Failed to fetch year data", e) from e

        return YearDataResponse(year_data=list(rows))

    async def exam_categories(self) -> ExamCategoriesResponse:
        """Handle GET /exams/categories requests."""
        try:
            categories = await self._service.exam_categories(ExamCategoriesQuery())
        except Exception as e:
            raise _http_error("Failed to fetch exam categories", e) from e

        return ExamCategoriesResponse(
            success=True,
            data=[
                ExamCategoryItem(slug=category.slug, name=category.name, count=category.count)
                for category in categories
            ],
        )

    async def revalidate(self, request: RevalidateRequest, admin_token: str | None) -> RevalidateResponse:
        """Handle POST /cache/revalidate requests.

        Args:
            request: The revalidation request DTO
            admin_token: Value of the X-Admin-Token header

        Returns:
            RevalidateResponse with the number of entries removed

        Raises:
            HTTPException: 401 if the admin token does not match
        """
        self._check_admin(admin_token)
        try:
            event = self._bus.publish(request.tag)
        except Exception as e:
            raise _http_error("Failed to revalidate", e) from e

        return RevalidateResponse(
            success=True,
            removed=event.keys_removed,
            message=f"Revalidated tag '{event.tag}'",
        )

    async def clear_cache(self, admin_token: str | None) -> RevalidateResponse:
        """Handle DELETE /cache requests."""
        self._check_admin(admin_token)
        count = self._service.cache.invalidate_all()
        return RevalidateResponse(
            success=True,
            removed=count,
            message="Cache cleared successfully",
        )

    async def invalidate_key(self, request: InvalidateKeyRequest, admin_token: str | None) -> RevalidateResponse:
        """Handle DELETE /cache/key requests."""
        self._check_admin(admin_token)
        removed = self._service.cache.invalidate(request.key)
        return RevalidateResponse(
            success=True,
            removed=int(removed),
            message=f"Invalidated '{request.key}'" if removed else f"'{request.key}' was not cached",
        )

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Returns:
            CacheStatsResponse with cache statistics

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        try:
            stats = self._service.cache.get_stats()

            return CacheStatsResponse(
                total_entries=stats.get("total_entries", 0),
                fresh_entries=stats.get("fresh_entries", 0),
                stale_entries=stats.get("stale_entries", 0),
                in_flight=stats.get("in_flight", 0),
                max_entries=stats.get("max_entries", 0),
                metrics=stats.get("metrics", {}),
            )

        except Exception as e:
            raise _http_error("Failed to get stats", e) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        is_healthy = await self._store.is_available()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            store_healthy=is_healthy,
        )

    def _check_admin(self, admin_token: str | None) -> None:
        expected = self._config.admin_token
        if not expected:
            return
        if admin_token is None or not hmac.compare_digest(admin_token, expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid admin token",
            )
