"""Aggregate query entities.

One frozen dataclass per aggregate endpoint. Each validates its own
parameters on construction and derives its cache key from normalized
values.
"""

from dataclasses import dataclass
from typing import ClassVar

from exam_cache.errors import InvalidParameterError
from exam_cache.keys import derive_key, normalize_code, normalize_name

DIFFICULTIES = ("easy", "medium", "hard")


def _require(parameter: str, value: str | None) -> None:
    # "---" normalizes to "" and is rejected as well
    if value is None or not normalize_name(value):
        raise InvalidParameterError(parameter, "is required")


def _difficulty(value: str | None) -> str | None:
    """Return the normalized difficulty, or None for 'any difficulty'."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in ("", "all"):
        return None
    if normalized not in DIFFICULTIES:
        raise InvalidParameterError("difficulty", f"must be one of {list(DIFFICULTIES)}")
    return normalized


@dataclass(frozen=True)
class ChapterCountsQuery:
    """Difficulty counts for one chapter of a category."""

    namespace: ClassVar[str] = "chapter-counts"

    category: str
    chapter: str

    def __post_init__(self) -> None:
        _require("category", self.category)
        _require("chapter", self.chapter)

    @property
    def cache_key(self) -> str:
        return derive_key(
            self.namespace,
            {"category": normalize_code(self.category), "chapter": normalize_name(self.chapter)},
        )


@dataclass(frozen=True)
class ChapterQuestionsQuery:
    """One page of practice questions for a chapter."""

    namespace: ClassVar[str] = "chapter-questions"

    category: str
    chapter: str
    difficulty: str | None = None
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        _require("category", self.category)
        _require("chapter", self.chapter)
        # Normalize eagerly so equal queries compare equal
        object.__setattr__(self, "difficulty", _difficulty(self.difficulty))
        if self.page < 1:
            raise InvalidParameterError("page", "must be >= 1")
        if not 1 <= self.limit <= 100:
            raise InvalidParameterError("limit", "must be between 1 and 100")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def cache_key(self) -> str:
        return derive_key(
            self.namespace,
            {
                "category": normalize_code(self.category),
                "chapter": normalize_name(self.chapter),
                "difficulty": self.difficulty,
                "page": self.page,
                "limit": self.limit,
            },
        )


@dataclass(frozen=True)
class SubtopicsQuery:
    """Subjects with their topics and question counts."""

    namespace: ClassVar[str] = "subtopics"

    category: str | None = None

    @property
    def cache_key(self) -> str:
        return derive_key(self.namespace, {"category": normalize_code(self.category) or None})


@dataclass(frozen=True)
class ChaptersBySubjectQuery:
    """Chapters of a subject, with question counts."""

    namespace: ClassVar[str] = "chapters-by-subject"

    category: str
    subject: str

    def __post_init__(self) -> None:
        _require("category", self.category)
        _require("subject", self.subject)

    @property
    def cache_key(self) -> str:
        return derive_key(
            self.namespace,
            {
                "category": normalize_code(self.category),
                "subject": normalize_name(self.subject),
            },
        )


@dataclass(frozen=True)
class YearDataQuery:
    """Year-wise paper data, served by a stored procedure."""

    namespace: ClassVar[str] = "year-data"

    category: str

    def __post_init__(self) -> None:
        _require("category", self.category)

    @property
    def cache_key(self) -> str:
        return derive_key(self.namespace, {"category": normalize_code(self.category)})


@dataclass(frozen=True)
class QuestionYearsQuery:
    """Distinct years for a topic at one difficulty."""

    namespace: ClassVar[str] = "question-years"

    category: str
    topic: str
    difficulty: str

    def __post_init__(self) -> None:
        _require("category", self.category)
        _require("topic", self.topic)
        _require("difficulty", self.difficulty)
        difficulty = _difficulty(self.difficulty)
        if difficulty is None:
            raise InvalidParameterError("difficulty", f"must be one of {list(DIFFICULTIES)}")
        object.__setattr__(self, "difficulty", difficulty)

    @property
    def cache_key(self) -> str:
        return derive_key(
            self.namespace,
            {
                "category": normalize_code(self.category),
                "topic": normalize_name(self.topic),
                "difficulty": self.difficulty,
            },
        )


@dataclass(frozen=True)
class QuestionTotalQuery:
    """Total number of questions in a category."""

    namespace: ClassVar[str] = "question-total"

    category: str

    def __post_init__(self) -> None:
        _require("category", self.category)

    @property
    def cache_key(self) -> str:
        return derive_key(self.namespace, {"category": normalize_code(self.category)})


@dataclass(frozen=True)
class ExamCategoriesQuery:
    """All exam categories with question counts."""

    namespace: ClassVar[str] = "exam-categories"

    @property
    def cache_key(self) -> str:
        return derive_key(self.namespace, {})


@dataclass(frozen=True)
class TopicsByChapterQuery:
    """Topics of one chapter, with question counts."""

    namespace: ClassVar[str] = "topics-by-chapter"

    category: str
    chapter: str
    subject: str | None = None

    def __post_init__(self) -> None:
        _require("category", self.category)
        _require("chapter", self.chapter)

    @property
    def cache_key(self) -> str:
        return derive_key(
            self.namespace,
            {
                "category": normalize_code(self.category),
                "chapter": normalize_name(self.chapter),
                "subject": normalize_name(self.subject) or None,
            },
        )


@dataclass(frozen=True)
class TopicSummaryQuery:
    """Difficulty counts and subjects of one practice topic."""

    namespace: ClassVar[str] = "topic-summary"

    category: str
    topic: str

    def __post_init__(self) -> None:
        _require("category", self.category)
        _require("topic", self.topic)

    @property
    def cache_key(self) -> str:
        # The topic is matched exactly by the store, so only whitespace is trimmed
        return derive_key(
            self.namespace,
            {"category": normalize_code(self.category), "topic": self.topic.strip()},
        )
