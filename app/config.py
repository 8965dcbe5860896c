# app/config.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env sits at the repository root, next to pyproject.toml
ENV_FILE = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    # ---- App ----
    APP_VERSION: str = "0.1.0"

    # ---- External news API ----
    # Optional: without a key the aggregator runs on RSS sources only.
    NEWS_API_KEY: Optional[str] = None
    NEWS_API_BASE_URL: str = "https://newsapi.org/v2/top-headlines"
    NEWS_API_CATEGORY: str = "technology"
    NEWS_API_PAGE_SIZE: int = Field(default=30, ge=1, le=100)

    # ---- Fetching ----
    NEWS_FETCH_TIMEOUT_S: float = Field(default=5.0, gt=0)
    NEWS_USER_AGENT: str = "codecraftx-news/1.0"
    NEWS_SOURCES_PATH: Optional[Path] = None

    # ---- Aggregation / cache ----
    NEWS_LIMIT_PER_CATEGORY: int = Field(default=30, ge=1)
    NEWS_CACHE_TTL_S: float = Field(default=900, gt=0)

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()


def get_news_api_key() -> Optional[str]:
    """
    Return the configured news API key, or None when it is missing or blank.
    A missing key is a supported configuration, not an error.
    """
    key = settings.NEWS_API_KEY
    if key and key.strip():
        return key.strip()
    return None
