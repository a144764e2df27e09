"""Aggregated result entities.

Produced fresh from a full scan of matching rows and cached as-is.
Frozen so a cached value can be shared between awaiters safely.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChapterCounts:
    """Question counts per difficulty for one chapter.

    Attributes:
        easy: Number of easy questions
        medium: Number of medium questions
        hard: Number of hard questions
        total: All matching questions, including unknown difficulties
    """

    easy: int = 0
    medium: int = 0
    hard: int = 0
    total: int = 0

    @property
    def counts(self) -> dict[str, int]:
        return {"easy": self.easy, "medium": self.medium, "hard": self.hard}


@dataclass(frozen=True)
class QuestionPage:
    """One page of questions out of the filtered chapter set."""

    questions: tuple[dict[str, Any], ...]
    total_count: int
    current_page: int
    total_pages: int
    has_more: bool


@dataclass(frozen=True)
class TopicCount:
    title: str
    count: int
    category: str | None = None


@dataclass(frozen=True)
class SubjectTopics:
    subject: str
    subtopics: tuple[TopicCount, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ChapterSummary:
    title: str
    slug: str
    count: int
    category: str | None = None
    subject: str | None = None


@dataclass(frozen=True)
class ChaptersBySubject:
    category: str
    subject: str | None
    chapters: tuple[ChapterSummary, ...]

    @property
    def total_chapters(self) -> int:
        return len(self.chapters)

    @property
    def total_questions(self) -> int:
        return sum(chapter.count for chapter in self.chapters)


@dataclass(frozen=True)
class ExamCategory:
    slug: str
    name: str
    count: int


@dataclass(frozen=True)
class ChapterTopic:
    title: str
    count: int
    category: str | None = None
    subject: str | None = None
    chapter: str | None = None


@dataclass(frozen=True)
class ChapterTopics:
    """Topics found under one chapter."""

    chapter_name: str
    subject: str | None
    category: str
    topics: tuple[ChapterTopic, ...]

    @property
    def total_topics(self) -> int:
        return len(self.topics)

    @property
    def total_questions(self) -> int:
        return sum(topic.count for topic in self.topics)


@dataclass(frozen=True)
class TopicSummary:
    """Difficulty counts and distinct subjects of one practice topic."""

    easy: int = 0
    medium: int = 0
    hard: int = 0
    subjects: tuple[str, ...] = ()

    @property
    def counts(self) -> dict[str, int]:
        return {"easy": self.easy, "medium": self.medium, "hard": self.hard}
