"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import InvalidateKeyRequest, RevalidateRequest
from .responses import (
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
    QuestionTotalResponse,
    QuestionYearsResponse,
    RevalidateResponse,
    SubjectTopicsItem,
    SubtopicsResponse,
    TopicCountItem,
    TopicsByChapterResponse,
    TopicSummaryResponse,
    YearDataResponse,
)

__all__ = [
    "InvalidateKeyRequest",
    "RevalidateRequest",
    "CacheStatsResponse",
    "ChapterCountsResponse",
    "ChapterItem",
    "ChapterQuestionsResponse",
    "ChaptersBySubjectResponse",
    "ChapterTopicItem",
    "ChapterTopicsData",
    "DifficultyCounts",
    "ExamCategoriesResponse",
    "ExamCategoryItem",
    "HealthCheckResponse",
    "QuestionTotalResponse",
    "QuestionYearsResponse",
    "RevalidateResponse",
    "SubjectTopicsItem",
    "SubtopicsResponse",
    "TopicCountItem",
    "TopicsByChapterResponse",
    "TopicSummaryResponse",
    "YearDataResponse",
]
