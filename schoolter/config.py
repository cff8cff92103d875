from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pipeline settings loaded from environment variables and .env file."""

    SQLITE_PATH: str = "./data/schoolter.db"

    # Establishments register (GIAS) input
    GIAS_CSV_PATH: str = "./data/seeds/gias_establishments.csv"
    GIAS_CSV_URL_TEMPLATE: str = (
        "https://ea-edubase-api-prod.azurewebsites.net/edubase/downloads/public/edubasealldata{date}.csv"
    )
    GIAS_CACHE_TTL_HOURS: int = 24
    # Fewer schools than this keeps the previous artifact instead
    GIAS_MIN_SCHOOLS: int = 51

    # Generated artifact consumed by the frontend
    OUTPUT_DIR: str = "./public/data"

    CACHE_DIR: str = "./data/cache"
    PIPELINE_LOG_PATH: str = "./data/pipeline.log"

    # Real-data fetching (enrich / full modes)
    FETCH_TIMEOUT_SECONDS: float = 10.0
    FETCH_DELAY_SECONDS: float = 1.0
    OFSTED_REPORTS_BASE: str = "https://reports.ofsted.gov.uk"
    PERFORMANCE_BASE: str = "https://www.compare-school-performance.service.gov.uk"

    # Academic year the synthetic figures describe (e.g. 2023 -> 2022/23 results)
    REFERENCE_YEAR: int = 2023

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
