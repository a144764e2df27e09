"""
Tests for the exam cache API.
"""

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from exam_cache.api.app import create_app
from exam_cache.config import settings
from exam_cache.repositories import InMemoryTableStore

TABLE = "examtracker"

ROWS = [
    {"_id": 1, "category": "CAT", "subject": "Quant", "topic": "Percentages", "chapter": "Arithmetic",
     "difficulty": "easy", "year": "2022", "question": "Q1"},
    {"_id": 2, "category": "CAT", "subject": "Quant", "topic": "Percentages", "chapter": "Arithmetic",
     "difficulty": "easy", "year": "2023", "question": "Q2"},
    {"_id": 3, "category": "CAT", "subject": "Quant", "topic": "Ratios", "chapter": "arithmetic",
     "difficulty": "hard", "year": "2023", "question": "Q3"},
    {"_id": 4, "category": "GATE-CSE", "subject": "Algorithms", "topic": "Graphs", "chapter": "Graphs",
     "difficulty": "medium", "year": "2021", "question": "Q4"},
]


@pytest.fixture
def table_store():
    store = InMemoryTableStore({TABLE: ROWS})

    async def year_data(params):
        return [{"year": 2022, "papers": 1}, {"year": 2024, "papers": 2}]

    store.register_procedure("get_year_data", year_data)
    return store


@pytest.fixture
def config():
    return replace(settings, store_backend="memory", store_table=TABLE, admin_token="s3cret")


@pytest.fixture
def client(table_store, config):
    """Create a test client with the lifespan running."""
    with TestClient(create_app(table_store=table_store, config=config)) as client:
        yield client


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Exam Cache API"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "store_healthy": True}


def test_chapter_counts(client):
    response = client.get("/questions/chapter/counts", params={"category": "cat", "chapter": "Arithmetic"})
    assert response.status_code == 200
    data = response.json()
    assert data["counts"] == {"easy": 2, "medium": 0, "hard": 1}
    assert data["total"] == 3
    assert response.headers["cache-control"] == "public, s-maxage=300, stale-while-revalidate=60"


def test_chapter_counts_is_served_from_cache(client, table_store):
    params = {"category": "CAT", "chapter": "Arithmetic"}
    client.get("/questions/chapter/counts", params=params)
    calls = len(table_store.select_calls)

    response = client.get("/questions/chapter/counts", params={"category": "cat", "chapter": "arithmetic"})

    assert response.status_code == 200
    assert len(table_store.select_calls) == calls
    assert client.get("/cache/stats").json()["metrics"]["hits"] == 1


def test_missing_parameter_is_bad_request(client):
    response = client.get("/questions/chapter/counts", params={"category": "CAT"})
    assert response.status_code == 400
    assert "chapter" in response.json()["detail"]


def test_invalid_difficulty_is_bad_request(client):
    response = client.get(
        "/questions/chapter",
        params={"category": "CAT", "chapter": "Arithmetic", "difficulty": "impossible"},
    )
    assert response.status_code == 400


def test_upstream_failure_is_bad_gateway(client, table_store):
    table_store.fail_on_select = 0
    response = client.get("/questions/chapter/counts", params={"category": "CAT", "chapter": "Arithmetic"})
    assert response.status_code == 502

    table_store.fail_on_select = None
    response = client.get("/questions/chapter/counts", params={"category": "CAT", "chapter": "Arithmetic"})
    assert response.status_code == 200


def test_chapter_questions(client):
    response = client.get(
        "/questions/chapter",
        params={"category": "CAT", "chapter": "arithmetic", "page": 1, "limit": 2},
    )
    assert response.status_code == 200
    data = response.json()
    assert [q["_id"] for q in data["questions"]] == [1, 2]
    assert data["hasMore"] is True
    assert data["totalCount"] == 3
    assert data["totalPages"] == 2
    assert data["currentPage"] == 1


def test_question_years(client):
    response = client.get(
        "/questions/years",
        params={"category": "CAT", "topic": "percentages", "difficulty": "easy"},
    )
    assert response.status_code == 200
    assert response.json() == {"years": ["2023", "2022"]}


def test_question_total(client):
    response = client.get("/questions/total", params={"category": "cat"})
    assert response.status_code == 200
    assert response.json()["total"] == 3


def test_all_subtopics(client):
    response = client.get("/allsubtopics", params={"category": "CAT"})
    assert response.status_code == 200
    subjects = response.json()["subjectsData"]
    assert subjects[0]["subject"] == "Quant"
    assert [t["title"] for t in subjects[0]["subtopics"]] == ["Percentages", "Ratios"]
    assert response.headers["cache-control"] == "public, s-maxage=30, stale-while-revalidate=30"


def test_chapters_by_subject(client):
    response = client.get("/chapters/by-subject", params={"category": "gate-cse", "subject": "algorithms"})
    assert response.status_code == 200
    data = response.json()
    assert data["totalChapters"] == 1
    assert data["chapters"][0]["slug"] == "graphs"


def test_chapters_by_subject_requires_subject(client):
    response = client.get("/chapters/by-subject", params={"category": "gate-cse"})
    assert response.status_code == 400
    assert "subject" in response.json()["detail"]


def test_topics_by_chapter(client):
    response = client.get("/topics/by-chapter", params={"category": "CAT", "chapter": "arithmetic", "subject": "Quant"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["chapterName"] == "arithmetic"
    assert data["subject"] == "Quant"
    assert [(t["title"], t["count"]) for t in data["topics"]] == [("Percentages", 2), ("Ratios", 1)]
    assert data["totalTopics"] == 2
    assert data["totalQuestions"] == 3
    assert response.headers["cache-control"] == "public, s-maxage=300, stale-while-revalidate=60"


def test_topics_by_chapter_requires_chapter(client):
    response = client.get("/topics/by-chapter", params={"category": "CAT"})
    assert response.status_code == 400
    assert "chapter" in response.json()["detail"]


def test_topic_summary(client):
    response = client.get("/questions", params={"category": "cat", "pagetopic": "Percentages"})
    assert response.status_code == 200
    assert response.json() == {"counts": {"easy": 2, "medium": 0, "hard": 0}, "subjects": ["Quant"]}
    assert response.headers["cache-control"] == "public, s-maxage=60, stale-while-revalidate=300"


def test_topic_summary_requires_topic(client):
    response = client.get("/questions", params={"category": "CAT"})
    assert response.status_code == 400


def test_year_wise(client):
    response = client.get("/year-wise", params={"category": "CAT"})
    assert response.status_code == 200
    assert [row["year"] for row in response.json()["yearData"]] == ["2024", "2022"]


def test_exam_categories(client):
    response = client.get("/exams/categories")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"][0] == {"slug": "cat", "name": "CAT", "count": 3}


def test_revalidate_requires_admin_token(client):
    response = client.post("/cache/revalidate", json={"tag": "examtracker"})
    assert response.status_code == 401


def test_revalidate_drops_tagged_entries(client, table_store):
    params = {"category": "CAT", "chapter": "Arithmetic"}
    client.get("/questions/chapter/counts", params=params)
    calls = len(table_store.select_calls)

    response = client.post(
        "/cache/revalidate",
        json={"tag": "examtracker"},
        headers={"X-Admin-Token": "s3cret"},
    )
    assert response.status_code == 200
    assert response.json()["removed"] == 1

    client.get("/questions/chapter/counts", params=params)
    assert len(table_store.select_calls) > calls


def test_invalidate_key_and_clear(client):
    client.get("/questions/total", params={"category": "CAT"})
    client.get("/exams/categories")
    headers = {"X-Admin-Token": "s3cret"}

    response = client.request(
        "DELETE", "/cache/key", json={"key": "question-total:category=CAT"}, headers=headers
    )
    assert response.json()["removed"] == 1

    response = client.delete("/cache", headers=headers)
    assert response.status_code == 200
    assert response.json()["removed"] == 1
    assert client.get("/cache/stats").json()["total_entries"] == 0
