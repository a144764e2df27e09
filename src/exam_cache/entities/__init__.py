"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .aggregates import (
    ChapterCounts,
    ChapterTopic,
    ChapterTopics,
    ChaptersBySubject,
    ChapterSummary,
    ExamCategory,
    QuestionPage,
    SubjectTopics,
    TopicCount,
    TopicSummary,
)
from .cache_entry import CacheEntry, CacheLookup, KeyState
from .queries import (
    DIFFICULTIES,
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

__all__ = [
    "CacheEntry",
    "CacheLookup",
    "KeyState",
    "DIFFICULTIES",
    "ChapterCountsQuery",
    "ChapterQuestionsQuery",
    "ChaptersBySubjectQuery",
    "ExamCategoriesQuery",
    "QuestionTotalQuery",
    "QuestionYearsQuery",
    "SubtopicsQuery",
    "TopicsByChapterQuery",
    "TopicSummaryQuery",
    "YearDataQuery",
    "ChapterCounts",
    "ChapterTopic",
    "ChapterTopics",
    "ChaptersBySubject",
    "ChapterSummary",
    "ExamCategory",
    "QuestionPage",
    "SubjectTopics",
    "TopicCount",
    "TopicSummary",
]
