import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import httpx
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Remote table store (Supabase / PostgREST)
    store_backend: str = os.getenv("STORE_BACKEND", "postgrest")
    store_url: str = os.getenv("STORE_URL", "http://localhost:54321/rest/v1")
    store_api_key: str | None = os.getenv("STORE_API_KEY")
    store_table: str = os.getenv("STORE_TABLE", "examtracker")
    store_timeout: float = float(os.getenv("STORE_TIMEOUT", "30"))
    store_application_name: str = os.getenv("STORE_APPLICATION_NAME", "exam-cache")

    # Aggregation
    aggregate_page_size: int = int(os.getenv("AGGREGATE_PAGE_SIZE", "1000"))

    # Cache TTLs in seconds, per endpoint
    cache_ttl_chapter_counts: float = float(os.getenv("CACHE_TTL_CHAPTER_COUNTS", "300"))
    cache_ttl_chapter_questions: float = float(os.getenv("CACHE_TTL_CHAPTER_QUESTIONS", "300"))
    cache_ttl_subtopics: float = float(os.getenv("CACHE_TTL_SUBTOPICS", "30"))
    cache_ttl_chapters: float = float(os.getenv("CACHE_TTL_CHAPTERS", "300"))
    cache_ttl_year_data: float = float(os.getenv("CACHE_TTL_YEAR_DATA", "60"))
    cache_ttl_question_years: float = float(os.getenv("CACHE_TTL_QUESTION_YEARS", "300"))
    cache_ttl_categories: float = float(os.getenv("CACHE_TTL_CATEGORIES", "300"))
    cache_ttl_question_total: float = float(os.getenv("CACHE_TTL_QUESTION_TOTAL", "300"))
    cache_ttl_topics: float = float(os.getenv("CACHE_TTL_TOPICS", "300"))
    cache_ttl_topic_summary: float = float(os.getenv("CACHE_TTL_TOPIC_SUMMARY", "60"))
    # 0 keeps the store unbounded
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "0"))

    # Admin stub: when unset, revalidation routes are open
    admin_token: str | None = os.getenv("ADMIN_TOKEN")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.store_backend not in ("postgrest", "memory"):
            raise ValueError(
                f"STORE_BACKEND must be one of ['postgrest', 'memory'], got {self.store_backend}"
            )

        if self.aggregate_page_size < 1:
            raise ValueError("AGGREGATE_PAGE_SIZE must be a positive integer")

        if self.cache_max_entries < 0:
            raise ValueError("CACHE_MAX_ENTRIES must be 0 (unbounded) or positive")

        ttls = (
            self.cache_ttl_chapter_counts,
            self.cache_ttl_chapter_questions,
            self.cache_ttl_subtopics,
            self.cache_ttl_chapters,
            self.cache_ttl_year_data,
            self.cache_ttl_question_years,
            self.cache_ttl_categories,
            self.cache_ttl_question_total,
            self.cache_ttl_topics,
            self.cache_ttl_topic_summary,
        )
        if any(ttl <= 0 for ttl in ttls):
            raise ValueError("CACHE_TTL_* values must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_store_client() -> httpx.AsyncClient:
    """Create an HTTP client for the remote table store."""
    headers = {"x-application-name": settings.store_application_name}
    if settings.store_api_key:
        headers["apikey"] = settings.store_api_key
        headers["Authorization"] = f"Bearer {settings.store_api_key}"

    return httpx.AsyncClient(
        base_url=settings.store_url,
        headers=headers,
        timeout=settings.store_timeout,
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the package logger."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
