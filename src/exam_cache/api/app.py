from typing import Annotated, Any

from fastapi import FastAPI, Header, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from exam_cache.api.dependencies import HandlerDep, lifespan
from exam_cache.config import Settings, configure_logging, settings
from exam_cache.dto import (
    CacheStatsResponse,
    ChapterCountsResponse,
    ChapterQuestionsResponse,
    ChaptersBySubjectResponse,
    ExamCategoriesResponse,
    HealthCheckResponse,
    InvalidateKeyRequest,
    QuestionTotalResponse,
    QuestionYearsResponse,
    RevalidateRequest,
    RevalidateResponse,
    SubtopicsResponse,
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
from exam_cache.protocols import TableStore

# Missing parameters reach the handler as None and are reported as 400
OptionalParam = Annotated[str | None, Query()]
AdminToken = Annotated[str | None, Header(alias="X-Admin-Token")]


def create_app(table_store: TableStore | None = None, config: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        table_store: Store to aggregate over. If None, built from settings
            on start-up.
        config: Settings. If None, uses global settings.

    Returns:
        Configured FastAPI app
    """
    configure_logging((config or settings).log_level)

    app = FastAPI(
        title="Exam Cache API",
        description="Read-through aggregate cache over the exam question bank",
        version="0.1.0",
        lifespan=lifespan,
    )
    if table_store is not None:
        app.state.table_store = table_store
    if config is not None:
        app.state.settings = config

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Exam Cache API",
            "version": "0.1.0",
            "description": "Read-through aggregate cache over the exam question bank",
            "endpoints": {
                "questions": "/questions/chapter",
                "subtopics": "/allsubtopics",
                "chapters": "/chapters/by-subject",
                "topics": "/topics/by-chapter",
                "topic_summary": "/questions",
                "year_wise": "/year-wise",
                "categories": "/exams/categories",
                "cache": "/cache",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        return await handler.health_check()

    @app.get("/questions/chapter/counts", response_model=ChapterCountsResponse)
    async def chapter_counts(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
        chapter: OptionalParam = None,
    ) -> ChapterCountsResponse:
        """Question counts per difficulty for one chapter."""
        result = await handler.chapter_counts(category, chapter)
        response.headers["Cache-Control"] = handler.cache_control(ChapterCountsQuery.namespace)
        return result

    @app.get("/questions/chapter", response_model=ChapterQuestionsResponse)
    async def chapter_questions(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
        chapter: OptionalParam = None,
        difficulty: OptionalParam = None,
        page: int = 1,
        limit: int = 10,
    ) -> ChapterQuestionsResponse:
        """One page of questions for a chapter."""
        result = await handler.chapter_questions(category, chapter, difficulty, page, limit)
        response.headers["Cache-Control"] = handler.cache_control(ChapterQuestionsQuery.namespace)
        return result

    @app.get("/questions/years", response_model=QuestionYearsResponse)
    async def question_years(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
        topic: OptionalParam = None,
        difficulty: OptionalParam = None,
    ) -> QuestionYearsResponse:
        result = await handler.question_years(category, topic, difficulty)
        response.headers["Cache-Control"] = handler.cache_control(QuestionYearsQuery.namespace)
        return result

    @app.get("/questions/total", response_model=QuestionTotalResponse)
    async def question_total(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
    ) -> QuestionTotalResponse:
        result = await handler.question_total(category)
        response.headers["Cache-Control"] = handler.cache_control(QuestionTotalQuery.namespace)
        return result

    @app.get("/allsubtopics", response_model=SubtopicsResponse)
    async def all_subtopics(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
    ) -> SubtopicsResponse:
        """Subjects with their topics and question counts."""
        result = await handler.subtopics(category)
        response.headers["Cache-Control"] = handler.cache_control(SubtopicsQuery.namespace)
        return result

    @app.get("/chapters/by-subject", response_model=ChaptersBySubjectResponse)
    async def chapters_by_subject(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
        subject: OptionalParam = None,
    ) -> ChaptersBySubjectResponse:
        result = await handler.chapters_by_subject(category, subject)
        response.headers["Cache-Control"] = handler.cache_control(ChaptersBySubjectQuery.namespace)
        return result

    @app.get("/topics/by-chapter", response_model=TopicsByChapterResponse)
    async def topics_by_chapter(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
        chapter: OptionalParam = None,
        subject: OptionalParam = None,
    ) -> TopicsByChapterResponse:
        result = await handler.topics_by_chapter(category, chapter, subject)
        response.headers["Cache-Control"] = handler.cache_control(TopicsByChapterQuery.namespace)
        return result

    @app.get("/questions", response_model=TopicSummaryResponse)
    async def topic_summary(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
        pagetopic: OptionalParam = None,
    ) -> TopicSummaryResponse:
        result = await handler.topic_summary(category, pagetopic)
        response.headers["Cache-Control"] = handler.cache_control(TopicSummaryQuery.namespace)
        return result

    @app.get("/year-wise", response_model=YearDataResponse)
    async def year_wise(
        handler: HandlerDep,
        response: Response,
        category: OptionalParam = None,
    ) -> YearDataResponse:
        """Year-wise paper data from the get_year_data procedure."""
        result = await handler.year_data(category)
        response.headers["Cache-Control"] = handler.cache_control(YearDataQuery.namespace)
        return result

    @app.get("/exams/categories", response_model=ExamCategoriesResponse)
    async def exam_categories(handler: HandlerDep, response: Response) -> ExamCategoriesResponse:
        result = await handler.exam_categories()
        response.headers["Cache-Control"] = handler.cache_control(ExamCategoriesQuery.namespace)
        return result

    @app.post("/cache/revalidate", response_model=RevalidateResponse)
    async def revalidate(
        request: RevalidateRequest,
        handler: HandlerDep,
        x_admin_token: AdminToken = None,
    ) -> RevalidateResponse:
        """Drop every cached aggregate carrying the given tag."""
        return await handler.revalidate(request, x_admin_token)

    @app.delete("/cache", response_model=RevalidateResponse)
    async def clear_cache(handler: HandlerDep, x_admin_token: AdminToken = None) -> RevalidateResponse:
        """Clear all entries from the cache."""
        return await handler.clear_cache(x_admin_token)

    @app.delete("/cache/key", response_model=RevalidateResponse)
    async def invalidate_key(
        request: InvalidateKeyRequest,
        handler: HandlerDep,
        x_admin_token: AdminToken = None,
    ) -> RevalidateResponse:
        return await handler.invalidate_key(request, x_admin_token)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def cache_stats(handler: HandlerDep) -> CacheStatsResponse:
        """Get cache statistics."""
        return await handler.get_stats()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "exam_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
