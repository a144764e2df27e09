"""Row schemas for the remote question bank table, and cache metrics.

Rows are validated right after they are fetched, so the reducers only
ever see typed records. A row that fails validation aborts the scan.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class QuestionMetaRow(_Row):
    """Row shape for chapter difficulty counts."""

    chapter: str | None = None
    difficulty: str | None = None


class QuestionRow(_Row):
    """Full practice question row."""

    id: Any = Field(None, alias="_id")
    question: str | None = None
    options_A: str | None = None
    options_B: str | None = None
    options_C: str | None = None
    options_D: str | None = None
    correct_option: str | None = None
    solution: str | None = None
    difficulty: str | None = None
    year: str | int | None = None
    subject: str | None = None
    chapter: str | None = None


class TopicRow(_Row):
    """Row shape for the subject/topic listing."""

    subject: str | None = None
    topic: str | None = None
    category: str | None = None


class ChapterRow(_Row):
    """Row shape for chapters grouped by subject."""

    chapter: str | None = None
    category: str | None = None
    subject: str | None = None
    topic: str | None = None


class YearRow(_Row):
    """Row returned by the get_year_data stored procedure."""

    model_config = ConfigDict(extra="allow")

    year: str

    @field_validator("year", mode="before")
    @classmethod
    def _year_to_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class TopicYearRow(_Row):
    """Row shape for the distinct years of a topic."""

    topic: str | None = None
    year: str | int | None = None


class CategoryRow(_Row):
    category: str | None = None


class DifficultyRow(_Row):
    difficulty: str | None = None


class SubjectRow(_Row):
    subject: str | None = None


@dataclass
class CacheMetrics:
    """Track hit/miss counters for the read-through cache."""

    hits: int = 0
    misses: int = 0
    stale_refreshes: int = 0
    coalesced: int = 0
    computations: int = 0
    failures: int = 0
    discarded: int = 0

    @property
    def total_lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_lookups == 0:
            return 0.0
        return self.hits / self.total_lookups

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale_refreshes": self.stale_refreshes,
            "coalesced": self.coalesced,
            "computations": self.computations,
            "failures": self.failures,
            "discarded": self.discarded,
            "hit_rate": self.hit_rate,
        }
