"""Pure reductions from validated rows to aggregated results.

Every comparison of a free-text field goes through keys.normalize_name,
the same function used to derive cache keys from query parameters.
"""

import math
import re
from collections.abc import Iterable, Sequence
from typing import Any

from exam_cache.entities import (
    DIFFICULTIES,
    ChapterCounts,
    ChaptersBySubject,
    ChapterTopic,
    ChapterTopics,
    ChapterSummary,
    ExamCategory,
    QuestionPage,
    SubjectTopics,
    TopicCount,
    TopicSummary,
)
from exam_cache.keys import normalize_name
from exam_cache.models import (
    CategoryRow,
    ChapterRow,
    DifficultyRow,
    QuestionMetaRow,
    QuestionRow,
    SubjectRow,
    TopicRow,
    TopicYearRow,
)

_YEAR = re.compile(r"\d{4}")


def chapter_counts(rows: Iterable[QuestionMetaRow], chapter: str) -> ChapterCounts:
    """Tally questions per difficulty for one chapter.

    ``total`` counts every matching row, including rows whose difficulty
    is missing or unknown.
    """
    wanted = normalize_name(chapter)
    tally = dict.fromkeys(DIFFICULTIES, 0)
    total = 0
    for row in rows:
        if not row.chapter or normalize_name(row.chapter) != wanted:
            continue
        total += 1
        difficulty = (row.difficulty or "").strip().lower()
        if difficulty in tally:
            tally[difficulty] += 1
    return ChapterCounts(total=total, **tally)


def question_page(rows: Sequence[QuestionRow], chapter: str, page: int, limit: int) -> QuestionPage:
    """Filter rows to one chapter and cut out a page window."""
    wanted = normalize_name(chapter)
    matching = [row for row in rows if row.chapter and normalize_name(row.chapter) == wanted]

    offset = (page - 1) * limit
    window = matching[offset : offset + limit]
    total = len(matching)
    return QuestionPage(
        questions=tuple(row.model_dump(by_alias=True) for row in window),
        total_count=total,
        current_page=page,
        total_pages=math.ceil(total / limit),
        has_more=offset + limit < total,
    )


def subjects_with_topics(rows: Iterable[TopicRow]) -> list[SubjectTopics]:
    """Group topics under their subject with a question count per topic.

    Topics are deduplicated by normalized title; the first spelling seen
    is kept for display. Subjects and topics keep first-seen order.
    """
    subjects: dict[str | None, dict[str, list[Any]]] = {}
    for row in rows:
        topics = subjects.setdefault(row.subject, {})
        key = normalize_name(row.topic)
        if key not in topics:
            topics[key] = [row.topic or "", 0, row.category]
        topics[key][1] += 1

    return [
        SubjectTopics(
            subject=subject or "",
            subtopics=tuple(
                TopicCount(title=title, count=count, category=category)
                for title, count, category in topics.values()
            ),
        )
        for subject, topics in subjects.items()
    ]


def _names_overlap(have: str, wanted: str) -> bool:
    if not have or not wanted:
        return False
    return have == wanted or wanted in have or have in wanted


def _subject_matches(row_subject: str | None, wanted: str) -> bool:
    if not wanted:
        return True
    return _names_overlap(normalize_name(row_subject), wanted)


def chapters_by_subject(rows: Iterable[ChapterRow], category: str, subject: str | None) -> ChaptersBySubject:
    """Group chapters of a subject with a question count per chapter.

    A row belongs to the subject when the normalized names are equal or
    one contains the other. Chapters are sorted by title.
    """
    wanted = normalize_name(subject)
    chapters: dict[str, list[Any]] = {}
    for row in rows:
        if not row.chapter or not _subject_matches(row.subject, wanted):
            continue
        key = normalize_name(row.chapter)
        if key not in chapters:
            chapters[key] = [row.chapter, 0, row.category, row.subject]
        chapters[key][1] += 1

    summaries = sorted(
        (
            ChapterSummary(
                title=title,
                slug=key.replace(" ", "-"),
                count=count,
                category=row_category,
                subject=row_subject,
            )
            for key, (title, count, row_category, row_subject) in chapters.items()
        ),
        key=lambda chapter: chapter.title.lower(),
    )
    return ChaptersBySubject(category=category, subject=subject, chapters=tuple(summaries))


def _chapter_matches(row: ChapterRow, wanted: str) -> bool:
    # Rows without a chapter fall back to matching on the topic name
    have = normalize_name(row.chapter)
    if have:
        return _names_overlap(have, wanted)
    return _names_overlap(normalize_name(row.topic), wanted)


def topics_by_chapter(
    rows: Iterable[ChapterRow],
    category: str,
    chapter: str,
    subject: str | None,
) -> ChapterTopics:
    """Group the topics of one chapter with a question count per topic.

    A row belongs to the chapter when the normalized names are equal or
    one contains the other. Topics are deduplicated by normalized title
    and sorted by title.
    """
    wanted = normalize_name(chapter)
    topics: dict[str, list[Any]] = {}
    for row in rows:
        if not row.topic or not _chapter_matches(row, wanted):
            continue
        key = normalize_name(row.topic)
        if key not in topics:
            topics[key] = [row.topic, 0, row.category, row.subject, row.chapter]
        topics[key][1] += 1

    summaries = sorted(
        (
            ChapterTopic(title=title, count=count, category=row_category, subject=row_subject, chapter=row_chapter)
            for title, count, row_category, row_subject, row_chapter in topics.values()
        ),
        key=lambda topic: topic.title.lower(),
    )
    return ChapterTopics(chapter_name=chapter, subject=subject, category=category, topics=tuple(summaries))


def topic_summary(difficulty_rows: Iterable[DifficultyRow], subject_rows: Iterable[SubjectRow]) -> TopicSummary:
    """Tally difficulties and collect distinct subjects in first-seen order."""
    tally = dict.fromkeys(DIFFICULTIES, 0)
    for row in difficulty_rows:
        difficulty = (row.difficulty or "").strip().lower()
        if difficulty in tally:
            tally[difficulty] += 1

    subjects = dict.fromkeys(row.subject for row in subject_rows if row.subject)
    return TopicSummary(subjects=tuple(subjects), **tally)


def year_sort_key(year: Any) -> tuple[int, int | str]:
    match = _YEAR.search(str(year))
    if match:
        return (0, -int(match.group(0)))
    return (1, str(year))


def sort_years_desc(years: Iterable[Any]) -> list[Any]:
    """Newest first by the first 4-digit year; values without one go last."""
    return sorted(years, key=year_sort_key)


def distinct_years(rows: Iterable[TopicYearRow], topic: str) -> list[Any]:
    """Distinct non-empty years of rows on ``topic``, newest first."""
    wanted = normalize_name(topic)
    seen: dict[Any, None] = {}
    for row in rows:
        if row.year and normalize_name(row.topic) == wanted:
            seen.setdefault(row.year, None)
    return sort_years_desc(seen)


def category_display_name(slug: str) -> str:
    """'gate-cse' -> 'GATE CSE'."""
    return " ".join(word.upper() for word in slug.split("-") if word)


def exam_categories(rows: Iterable[CategoryRow]) -> list[ExamCategory]:
    """Count questions per lower-cased category, most questions first."""
    counts: dict[str, int] = {}
    for row in rows:
        if not row.category:
            continue
        slug = row.category.strip().lower()
        counts[slug] = counts.get(slug, 0) + 1

    categories = [
        ExamCategory(slug=slug, name=category_display_name(slug), count=count)
        for slug, count in counts.items()
    ]
    return sorted(categories, key=lambda category: -category.count)
