"""
Tests for paginated scans and the aggregate reductions.
"""

import pytest

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
from exam_cache.errors import PartialBatchError, UpstreamFetchError
from exam_cache.models import QuestionMetaRow
from exam_cache.services import Aggregator
from exam_cache.services.reducers import category_display_name, sort_years_desc

TABLE = "examtracker"


def _question(chapter, difficulty, category="CAT", **extra):
    return {"category": category, "chapter": chapter, "difficulty": difficulty, **extra}


@pytest.mark.asyncio
async def test_chapter_counts(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [
            _question("Graphs", "easy"),
            _question("graphs", "Easy"),
            _question("Graphs ", "hard"),
            _question("Trees", "medium"),
            _question("Graphs", "easy", category="GATE"),
        ],
    )

    counts = await aggregator.chapter_counts(ChapterCountsQuery(category="cat", chapter="graphs"))

    assert counts.counts == {"easy": 2, "medium": 0, "hard": 1}
    assert counts.total == 3


@pytest.mark.asyncio
async def test_total_includes_unknown_difficulty(table_store, aggregator):
    table_store.add_rows(TABLE, [_question("Graphs", "easy"), _question("Graphs", None)])

    counts = await aggregator.chapter_counts(ChapterCountsQuery(category="CAT", chapter="Graphs"))

    assert counts.easy == 1
    assert counts.total == 2


@pytest.mark.asyncio
async def test_exactly_one_page_of_rows_costs_two_requests(table_store, aggregator):
    table_store.add_rows(TABLE, [_question("Graphs", "easy") for _ in range(1000)])

    rows = await aggregator.fetch_all(["chapter", "difficulty"], {"category": "CAT"}, QuestionMetaRow)

    assert len(rows) == 1000
    assert table_store.select_calls == [(0, 999), (1000, 1999)]


@pytest.mark.asyncio
async def test_scan_stops_on_first_short_page(table_store):
    table_store.add_rows(TABLE, [_question("Graphs", "easy") for _ in range(5)])
    aggregator = Aggregator(store=table_store, table=TABLE, page_size=2)

    rows = await aggregator.fetch_all(["chapter"], {}, QuestionMetaRow)

    assert len(rows) == 5
    assert table_store.select_calls == [(0, 1), (2, 3), (4, 5)]


@pytest.mark.asyncio
async def test_first_page_failure_is_upstream_error(table_store, aggregator):
    table_store.fail_on_select = 0

    with pytest.raises(UpstreamFetchError) as exc_info:
        await aggregator.chapter_counts(ChapterCountsQuery(category="CAT", chapter="Graphs"))

    assert not isinstance(exc_info.value, PartialBatchError)


@pytest.mark.asyncio
async def test_later_page_failure_is_partial_batch(table_store):
    table_store.add_rows(TABLE, [_question("Graphs", "easy") for _ in range(4)])
    table_store.fail_on_select = 1
    aggregator = Aggregator(store=table_store, table=TABLE, page_size=2)

    with pytest.raises(PartialBatchError) as exc_info:
        await aggregator.chapter_counts(ChapterCountsQuery(category="CAT", chapter="Graphs"))

    assert exc_info.value.pages_fetched == 1
    assert exc_info.value.table == TABLE


@pytest.mark.asyncio
async def test_malformed_row_is_upstream_error(table_store, aggregator):
    table_store.register_procedure("get_year_data", _rows([{"papers": 3}]))

    with pytest.raises(UpstreamFetchError):
        await aggregator.year_data(YearDataQuery(category="CAT"))


@pytest.mark.asyncio
async def test_chapter_questions_page(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [_question("Graphs", "easy", _id=i, question=f"Q{i}") for i in range(1, 26)]
        + [_question("Trees", "easy", _id=100, question="T")],
    )

    page = await aggregator.chapter_questions(
        ChapterQuestionsQuery(category="CAT", chapter="graphs", page=3, limit=10)
    )

    assert [q["_id"] for q in page.questions] == list(range(21, 26))
    assert page.total_count == 25
    assert page.total_pages == 3
    assert page.current_page == 3
    assert page.has_more is False


@pytest.mark.asyncio
async def test_chapter_questions_pushes_difficulty_filter(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [_question("Graphs", "easy", _id=1), _question("Graphs", "hard", _id=2)],
    )

    page = await aggregator.chapter_questions(
        ChapterQuestionsQuery(category="CAT", chapter="Graphs", difficulty="HARD")
    )

    assert [q["_id"] for q in page.questions] == [2]
    assert page.has_more is False


@pytest.mark.asyncio
async def test_subjects_with_topics(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [
            {"category": "CAT", "subject": "Quant", "topic": "Time and Work"},
            {"category": "CAT", "subject": "Quant", "topic": "time-and-work"},
            {"category": "CAT", "subject": "Quant", "topic": "Percentages"},
            {"category": "CAT", "subject": "VARC", "topic": "Reading"},
            {"category": "GATE", "subject": "CS", "topic": "Graphs"},
        ],
    )

    subjects = await aggregator.subjects_with_topics(SubtopicsQuery(category="CAT"))

    assert [s.subject for s in subjects] == ["Quant", "VARC"]
    quant = subjects[0]
    assert [(t.title, t.count) for t in quant.subtopics] == [("Time and Work", 2), ("Percentages", 1)]


@pytest.mark.asyncio
async def test_chapters_by_subject(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [
            {"category": "GATE", "subject": "Data Structures", "chapter": "Trees"},
            {"category": "GATE", "subject": "data structures", "chapter": "trees"},
            {"category": "GATE", "subject": "Data Structures and Algorithms", "chapter": "Arrays"},
            {"category": "GATE", "subject": "Networks", "chapter": "Routing"},
        ],
    )

    result = await aggregator.chapters_by_subject(
        ChaptersBySubjectQuery(category="gate", subject="Data-Structures")
    )

    assert [(c.title, c.slug, c.count) for c in result.chapters] == [("Arrays", "arrays", 1), ("Trees", "trees", 2)]
    assert result.total_chapters == 2
    assert result.total_questions == 3
    assert result.category == "GATE"


@pytest.mark.asyncio
async def test_topics_by_chapter_groups_and_falls_back_to_topic(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [
            {"category": "JEE", "subject": "Physics", "chapter": "Laws of Motion", "topic": "Friction"},
            {"category": "JEE", "subject": "Physics", "chapter": "laws-of-motion", "topic": "friction"},
            {"category": "JEE", "subject": "Physics", "chapter": "Laws of Motion", "topic": "Circular Motion"},
            {"category": "JEE", "subject": "Physics", "chapter": None, "topic": "Laws of Motion Basics"},
            {"category": "JEE", "subject": "Physics", "chapter": "Optics", "topic": "Lenses"},
            {"category": "JEE", "subject": "Physics", "chapter": "Laws of Motion", "topic": None},
            {"category": "NEET", "subject": "Physics", "chapter": "Laws of Motion", "topic": "Inertia"},
        ],
    )

    result = await aggregator.topics_by_chapter(
        TopicsByChapterQuery(category="jee", chapter="laws-of-motion", subject="Physics")
    )

    assert [(t.title, t.count) for t in result.topics] == [
        ("Circular Motion", 1),
        ("Friction", 2),
        ("Laws of Motion Basics", 1),
    ]
    assert result.total_topics == 3
    assert result.total_questions == 4
    assert result.category == "JEE"
    assert result.chapter_name == "laws-of-motion"


@pytest.mark.asyncio
async def test_topic_summary_counts_difficulties_and_subjects(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [
            {"category": "CAT", "topic": "Percentages", "difficulty": "easy", "subject": "Quant"},
            {"category": "CAT", "topic": "Percentages", "difficulty": "Hard", "subject": "Arithmetic"},
            {"category": "CAT", "topic": "Percentages", "difficulty": "unknown", "subject": "Quant"},
            {"category": "CAT", "topic": "Percentages", "difficulty": "easy", "subject": None},
            {"category": "CAT", "topic": "Ratios", "difficulty": "medium", "subject": "Quant"},
        ],
    )

    summary = await aggregator.topic_summary(TopicSummaryQuery(category="cat", topic=" Percentages "))

    assert summary.counts == {"easy": 2, "medium": 0, "hard": 1}
    assert summary.subjects == ("Quant", "Arithmetic")
    assert len(table_store.select_calls) == 2


@pytest.mark.asyncio
async def test_question_years_distinct_newest_first(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [
            {"category": "CAT", "difficulty": "easy", "topic": "Trees", "year": "2019"},
            {"category": "CAT", "difficulty": "easy", "topic": "trees", "year": "2023"},
            {"category": "CAT", "difficulty": "easy", "topic": "Trees", "year": "2019"},
            {"category": "CAT", "difficulty": "easy", "topic": "Trees", "year": None},
            {"category": "CAT", "difficulty": "hard", "topic": "Trees", "year": "2024"},
        ],
    )

    years = await aggregator.question_years(QuestionYearsQuery(category="CAT", topic="Trees", difficulty="easy"))

    assert years == ["2023", "2019"]


@pytest.mark.asyncio
async def test_exam_categories(table_store, aggregator):
    table_store.add_rows(
        TABLE,
        [{"category": "CAT"}, {"category": "gate-cse"}, {"category": "GATE-CSE"}, {"category": None}],
    )

    categories = await aggregator.exam_categories(ExamCategoriesQuery())

    assert [(c.slug, c.name, c.count) for c in categories] == [("gate-cse", "GATE CSE", 2), ("cat", "CAT", 1)]


@pytest.mark.asyncio
async def test_year_data_from_procedure(table_store, aggregator):
    table_store.register_procedure(
        "get_year_data",
        _rows([{"year": 2021, "papers": 2}, {"year": "2023 Slot 1", "papers": 1}, {"year": "Sample", "papers": 4}]),
    )

    rows = await aggregator.year_data(YearDataQuery(category="cat"))

    assert [row["year"] for row in rows] == ["2023 Slot 1", "2021", "Sample"]
    assert rows[0]["papers"] == 1
    assert table_store.calls[-1] == ("rpc", "get_year_data", {"category_param": "CAT"})


@pytest.mark.asyncio
async def test_question_total_uses_count(table_store, aggregator):
    table_store.add_rows(TABLE, [_question("Graphs", "easy"), _question("Trees", "hard"), _question("X", "easy", "GATE")])

    assert await aggregator.question_total(QuestionTotalQuery(category="cat")) == 2
    assert table_store.select_calls == []


def test_sort_years_desc_and_display_names():
    assert sort_years_desc(["2019", "n/a", "2023", 2021]) == ["2023", 2021, "2019", "n/a"]
    assert category_display_name("gate-cse") == "GATE CSE"


def _rows(rows):
    async def procedure(params):
        return rows

    return procedure
