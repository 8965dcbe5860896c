"""
News API adapter.

Fetches technology headlines for Turkish and English concurrently. The two
language branches are isolated from each other: one failing leaves the
other's items intact.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.core.logging import get_logger
from app.models.news_normalized import NormalizedNewsItem
from app.models.news_raw import RawNewsApiArticle
from services.news_isolation import isolate_source
from services.news_normalization import build_news_item, filter_invalid_items

logger = get_logger().bind(module="newsapi_fetcher_service")

_CATEGORY_BY_LANGUAGE: Dict[str, str] = {"tr": "turkish", "en": "global"}
_SOURCE_LABEL_BY_LANGUAGE: Dict[str, str] = {"tr": "NewsAPI TR", "en": "NewsAPI EN"}


@dataclass(frozen=True)
class NewsApiResult:
    tr: List[NormalizedNewsItem] = field(default_factory=list)
    en: List[NormalizedNewsItem] = field(default_factory=list)


def normalize_article(article: RawNewsApiArticle, language: str) -> NormalizedNewsItem:
    description = article.get("description")
    if description is None:
        description = article.get("content")
    return build_news_item(
        title=article.get("title"),
        url=article.get("url"),
        description=description,
        content=article.get("content"),
        image=article.get("urlToImage"),
        source=_SOURCE_LABEL_BY_LANGUAGE[language],
        language=language,
        published=article.get("publishedAt"),
        category=_CATEGORY_BY_LANGUAGE[language],
    )


def normalize_payload(payload: Any, language: str) -> List[NormalizedNewsItem]:
    """
    Map a decoded response body to items. A body that is not status "ok"
    with a list of articles is an empty result, not an error.
    """
    if not isinstance(payload, dict):
        return []
    articles = payload.get("articles")
    if payload.get("status") != "ok" or not isinstance(articles, list):
        logger.info(
            "news_api_unexpected_payload",
            language=language,
            status=payload.get("status"),
            code=payload.get("code"),
        )
        return []
    items = [
        normalize_article(article, language)
        for article in articles
        if isinstance(article, dict)
    ]
    return filter_invalid_items(items)


class NewsApiFetcherService:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        category: Optional[str] = None,
        page_size: Optional[int] = None,
        timeout_s: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url or settings.NEWS_API_BASE_URL
        self.category = category or settings.NEWS_API_CATEGORY
        self.page_size = page_size or settings.NEWS_API_PAGE_SIZE
        self.timeout_s = timeout_s if timeout_s is not None else settings.NEWS_FETCH_TIMEOUT_S
        self.user_agent = user_agent or settings.NEWS_USER_AGENT
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "NewsApiFetcherService":
        # Key goes in a header so it never shows up in request urls or error messages.
        self._client = httpx.AsyncClient(
            timeout=self.timeout_s,
            headers={"User-Agent": self.user_agent, "X-Api-Key": self.api_key},
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _fetch_payload(self, language: str) -> Any:
        if not self._client:
            raise RuntimeError("NewsApiFetcherService client not initialized")
        response = await self._client.get(
            self.base_url,
            params={
                "category": self.category,
                "language": language,
                "pageSize": str(self.page_size),
            },
        )
        response.raise_for_status()
        return response.json()

    async def fetch_language(self, language: str) -> List[NormalizedNewsItem]:
        """Fetch and normalize one language branch. Raises on transport or HTTP errors."""
        payload = await self._fetch_payload(language)
        items = normalize_payload(payload, language)
        logger.info("news_api_fetch_success", language=language, items=len(items))
        return items

    async def fetch_language_isolated(self, language: str) -> List[NormalizedNewsItem]:
        return await isolate_source(
            self.fetch_language(language),
            event="news_api_fetch_failed",
            timeout_s=self.timeout_s,
            language=language,
        )


async def fetch_news_api_both(api_key: str) -> NewsApiResult:
    """Fetch tr and en headlines in parallel; a failed branch comes back empty."""
    async with NewsApiFetcherService(api_key) as service:
        tr, en = await asyncio.gather(
            service.fetch_language_isolated("tr"),
            service.fetch_language_isolated("en"),
        )
    return NewsApiResult(tr=tr, en=en)
