"""
RSS source registry loader.

Parses configs/news_sources.yml into typed NewsSource objects, logging and
skipping invalid entries instead of failing the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from app.config import settings
from app.core.logging import get_logger
from app.models.news_normalized import NEWS_CATEGORIES, NEWS_LANGUAGES

logger = get_logger().bind(module="news_sources")

THIS_FILE = Path(__file__).resolve()
APP_DIR = THIS_FILE.parent.parent  # app
REPO_ROOT = APP_DIR.parent
NEWS_SOURCES_YML = REPO_ROOT / "configs" / "news_sources.yml"

# Category used when an entry does not set one.
DEFAULT_CATEGORY_BY_LANGUAGE: Dict[str, str] = {"tr": "turkish", "en": "global"}


@dataclass(frozen=True)
class NewsSource:
    """Single RSS feed definition."""

    key: str
    name: str
    url: str
    language: str
    category: str


def _default_config_path() -> Path:
    return Path(settings.NEWS_SOURCES_PATH) if settings.NEWS_SOURCES_PATH else NEWS_SOURCES_YML


def load_news_sources_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the raw YAML config.

    Returns an empty dict if the file is missing or invalid; aggregation then
    simply runs without RSS sources.
    """
    cfg_path = Path(path) if path else _default_config_path()
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.error("news_sources_config_not_found", path=str(cfg_path))
        return {}
    except OSError as exc:
        logger.error("news_sources_config_read_error", path=str(cfg_path), error=str(exc))
        return {}

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        logger.error("news_sources_config_parse_error", path=str(cfg_path), error=str(exc))
        return {}

    if not isinstance(data, dict):
        logger.error(
            "news_sources_config_invalid_root",
            path=str(cfg_path),
            root_type=type(data).__name__,
        )
        return {}

    return data


def _validate_source(raw: Dict[str, Any]) -> Optional[NewsSource]:
    """Validate a raw dict and convert it to a NewsSource, logging issues."""
    required_keys = ("name", "url", "language")
    missing = [k for k in required_keys if not raw.get(k)]
    if missing:
        logger.warning("news_source_invalid_missing_fields", missing=missing, raw=raw)
        return None

    url = raw.get("url")
    if not isinstance(url, str) or not url.strip().startswith(("http://", "https://")):
        logger.warning("news_source_invalid_url", url=url, raw=raw)
        return None
    url = url.strip()

    language = str(raw.get("language")).strip().lower()
    if language not in NEWS_LANGUAGES:
        logger.warning(
            "news_source_invalid_language",
            language=language,
            allowed=list(NEWS_LANGUAGES),
            raw=raw,
        )
        return None

    category = str(raw.get("category") or DEFAULT_CATEGORY_BY_LANGUAGE[language]).strip().lower()
    if category not in NEWS_CATEGORIES:
        logger.warning(
            "news_source_invalid_category",
            category=category,
            allowed=list(NEWS_CATEGORIES),
            raw=raw,
        )
        return None

    name = str(raw.get("name")).strip()
    if not name:
        logger.warning("news_source_invalid_empty_name", raw=raw)
        return None

    key_raw = raw.get("key")
    if isinstance(key_raw, str) and key_raw.strip():
        source_key = key_raw.strip().lower()
    else:
        source_key = url.lower()

    return NewsSource(
        key=source_key,
        name=name,
        url=url,
        language=language,
        category=category,
    )


@lru_cache(maxsize=8)
def _load_sources_from_path(path_str: str) -> List[NewsSource]:
    cfg_path = Path(path_str)
    cfg = load_news_sources_config(cfg_path)
    raw_sources = cfg.get("sources", [])

    if not isinstance(raw_sources, list):
        logger.error(
            "news_sources_invalid_sources_type",
            actual_type=type(raw_sources).__name__,
            path=str(cfg_path),
        )
        return []

    result: List[NewsSource] = []
    seen_keys: set[str] = set()
    for idx, raw in enumerate(raw_sources):
        if not isinstance(raw, dict):
            logger.warning(
                "news_source_invalid_entry_type",
                index=idx,
                value_type=type(raw).__name__,
            )
            continue
        parsed = _validate_source(raw)
        if parsed is None:
            continue
        if parsed.key in seen_keys:
            logger.warning("news_source_duplicate_key", key=parsed.key, index=idx)
            continue
        seen_keys.add(parsed.key)
        result.append(parsed)

    logger.info("news_sources_loaded", path=str(cfg_path), total=len(result))
    return result


def get_all_news_sources(path: Optional[Path] = None) -> List[NewsSource]:
    """
    Public accessor for all valid RSS sources.

    Accepts an optional path (useful for tests). Results are cached per path.
    """
    cfg_path = Path(path) if path else _default_config_path()
    sources = _load_sources_from_path(str(cfg_path.resolve()))
    return list(sources)


def clear_news_sources_cache() -> None:
    """Reset the LRU cache (useful for tests)."""
    _load_sources_from_path.cache_clear()
