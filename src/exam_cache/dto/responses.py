"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _AliasedResponse(BaseModel):
    """Response serialized with camelCase keys, built with field names."""

    model_config = ConfigDict(populate_by_name=True)


class DifficultyCounts(BaseModel):
    easy: int = Field(0, ge=0)
    medium: int = Field(0, ge=0)
    hard: int = Field(0, ge=0)


class ChapterCountsResponse(BaseModel):
    """Response DTO for chapter difficulty counts."""

    counts: DifficultyCounts
    total: int = Field(..., description="All questions in the chapter", ge=0)
    easy: int = Field(..., ge=0)
    medium: int = Field(..., ge=0)
    hard: int = Field(..., ge=0)


class ChapterQuestionsResponse(_AliasedResponse):
    """Response DTO for one page of chapter questions."""

    questions: list[dict[str, Any]] = Field(default_factory=list)
    has_more: bool = Field(..., alias="hasMore")
    total_count: int = Field(..., alias="totalCount", ge=0)
    current_page: int = Field(..., alias="currentPage", ge=1)
    total_pages: int = Field(..., alias="totalPages", ge=0)


class TopicCountItem(BaseModel):
    title: str
    count: int = Field(..., ge=0)
    category: str | None = None


class SubjectTopicsItem(BaseModel):
    subject: str
    subtopics: list[TopicCountItem] = Field(default_factory=list)


class SubtopicsResponse(_AliasedResponse):
    """Response DTO for subjects with their topics."""

    subjects_data: list[SubjectTopicsItem] = Field(..., alias="subjectsData")


class ChapterItem(BaseModel):
    title: str
    slug: str = Field(..., description="URL-friendly chapter name")
    count: int = Field(..., ge=0)
    category: str | None = None
    subject: str | None = None


class ChaptersBySubjectResponse(_AliasedResponse):
    """Response DTO for chapters of a subject."""

    subject: str | None
    category: str
    chapters: list[ChapterItem] = Field(default_factory=list)
    total_chapters: int = Field(..., alias="totalChapters", ge=0)
    total_questions: int = Field(..., alias="totalQuestions", ge=0)


class ChapterTopicItem(BaseModel):
    title: str
    count: int = Field(..., ge=0)
    category: str | None = None
    subject: str | None = None
    chapter: str | None = None


class ChapterTopicsData(_AliasedResponse):
    chapter_name: str = Field(..., alias="chapterName")
    subject: str | None = None
    category: str
    topics: list[ChapterTopicItem] = Field(default_factory=list)
    total_topics: int = Field(..., alias="totalTopics", ge=0)
    total_questions: int = Field(..., alias="totalQuestions", ge=0)


class TopicsByChapterResponse(BaseModel):
    """Response DTO for the topics of a chapter."""

    success: bool = True
    data: ChapterTopicsData


class TopicSummaryResponse(BaseModel):
    """Response DTO for a practice topic's difficulty counts and subjects."""

    counts: DifficultyCounts
    subjects: list[str] = Field(default_factory=list)


class YearDataResponse(_AliasedResponse):
    """Response DTO for year-wise paper data."""

    year_data: list[dict[str, Any]] = Field(..., alias="yearData")


class QuestionYearsResponse(BaseModel):
    years: list[str | int] = Field(default_factory=list)


class QuestionTotalResponse(BaseModel):
    category: str
    total: int = Field(..., ge=0)


class ExamCategoryItem(BaseModel):
    slug: str
    name: str
    count: int = Field(..., ge=0)


class ExamCategoriesResponse(BaseModel):
    success: bool = True
    data: list[ExamCategoryItem] = Field(default_factory=list)


class RevalidateResponse(BaseModel):
    """Response DTO for invalidation operations."""

    success: bool = Field(..., description="Whether the operation succeeded")
    removed: int = Field(..., description="Number of cache entries removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total_entries: int = Field(..., description="Entries held, fresh or stale", ge=0)
    fresh_entries: int = Field(0, ge=0)
    stale_entries: int = Field(0, ge=0)
    in_flight: int = Field(..., description="Computations currently running", ge=0)
    max_entries: int = Field(0, description="Entry bound (0 = unbounded)", ge=0)
    metrics: dict[str, float | int] = Field(default_factory=dict)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    store_healthy: bool = Field(..., description="Whether the table store is reachable")
