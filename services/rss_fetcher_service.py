"""
RSS adapter.

Fetches every configured feed concurrently, parses it with feedparser and
maps entries to NormalizedNewsItem. A failing feed (timeout, HTTP error,
unparseable body) contributes nothing and is logged; the other feeds are
unaffected.
"""

from __future__ import annotations

import asyncio
from html import unescape
from typing import Any, List, Optional, Sequence

import feedparser
import httpx

from app.config import settings
from app.core.logging import get_logger
from app.models.news_normalized import NormalizedNewsItem
from app.models.news_raw import RawRssEntry
from app.models.news_sources import NewsSource, get_all_news_sources
from services.news_isolation import isolate_source
from services.news_normalization import (
    as_text,
    build_news_item,
    extract_image_from_html,
    filter_invalid_items,
    safe_image_url,
    strip_html,
)

logger = get_logger().bind(module="rss_fetcher_service")


class RssFeedParseError(Exception):
    """The response body could not be read as an RSS or Atom feed."""


def _first_content_value(entry: RawRssEntry) -> str:
    content = entry.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict):
                val = block.get("value")
                if isinstance(val, str) and val.strip():
                    return val
    if isinstance(content, dict):
        return as_text(content.get("value"))
    return ""


def _first_media_url(value: Any, *keys: str) -> Optional[str]:
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return None
    for block in value:
        if not isinstance(block, dict):
            continue
        for key in keys:
            url = safe_image_url(block.get(key))
            if url:
                return url
    return None


def _extract_rss_url(entry: RawRssEntry) -> str:
    link = as_text(entry.get("link")).strip()
    if link:
        return link
    return as_text(entry.get("id")).strip()


def _extract_rss_image(entry: RawRssEntry, content_html: str) -> Optional[str]:
    image = _first_media_url(entry.get("enclosures"), "href", "url")
    if not image:
        links = entry.get("links")
        if isinstance(links, list):
            enclosure_links = [
                link for link in links
                if isinstance(link, dict) and str(link.get("rel") or "").lower() == "enclosure"
            ]
            image = _first_media_url(enclosure_links, "href")
    if not image:
        image = _first_media_url(entry.get("media_content"), "url")
    if not image:
        image = _first_media_url(entry.get("media_thumbnail"), "url")
    if not image:
        image = extract_image_from_html(content_html or as_text(entry.get("summary")))
    return image


def _extract_rss_published(entry: RawRssEntry) -> Any:
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if value:
            return value
    return entry.get("published") or entry.get("updated")


def _html_to_text(value: str) -> str:
    # feedparser hands back sanitized HTML with entities still encoded
    return strip_html(unescape(value)) if value else ""


def normalize_rss_entry(entry: RawRssEntry, source: NewsSource) -> NormalizedNewsItem:
    summary_html = as_text(entry.get("summary"))
    content_html = _first_content_value(entry)
    summary_text = _html_to_text(summary_html)
    content_text = _html_to_text(content_html)
    return build_news_item(
        title=entry.get("title"),
        url=_extract_rss_url(entry),
        description=summary_text or content_text,
        content=content_text or summary_text,
        image=_extract_rss_image(entry, content_html),
        source=source.name,
        language=source.language,
        published=_extract_rss_published(entry),
        category=source.category,
    )


def normalize_feed_entries(parsed_feed: Any, source: NewsSource) -> List[NormalizedNewsItem]:
    """Map every entry of a parsed feed; entries without title or link are dropped."""
    if isinstance(parsed_feed, dict):
        entries = parsed_feed.get("entries") or []
    else:
        entries = getattr(parsed_feed, "entries", []) or []
    items: List[NormalizedNewsItem] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        items.append(normalize_rss_entry(entry, source))
    return filter_invalid_items(items)


class RssFetcherService:
    def __init__(
        self,
        *,
        timeout_s: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.timeout_s = timeout_s if timeout_s is not None else settings.NEWS_FETCH_TIMEOUT_S
        self.user_agent = user_agent or settings.NEWS_USER_AGENT
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RssFetcherService":
        self._client = httpx.AsyncClient(
            timeout=self.timeout_s,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _fetch_feed(self, source: NewsSource) -> bytes:
        if not self._client:
            raise RuntimeError("RssFetcherService client not initialized")
        response = await self._client.get(source.url)
        response.raise_for_status()
        return response.content

    async def fetch_feed(self, source: NewsSource) -> List[NormalizedNewsItem]:
        """Fetch and normalize one feed. Raises on any failure."""
        raw_feed = await self._fetch_feed(source)
        parsed = feedparser.parse(raw_feed)
        if parsed.get("bozo") and not parsed.get("version") and not parsed.get("entries"):
            raise RssFeedParseError(str(parsed.get("bozo_exception") or "not a feed"))
        items = normalize_feed_entries(parsed, source)
        logger.info(
            "news_rss_feed_success",
            source=source.name,
            entries=len(parsed.get("entries") or []),
            items=len(items),
        )
        return items

    async def fetch_source(self, source: NewsSource) -> List[NormalizedNewsItem]:
        """fetch_feed bounded by the timeout; failures resolve to []."""
        return await isolate_source(
            self.fetch_feed(source),
            event="news_rss_feed_failed",
            timeout_s=self.timeout_s,
            source=source.name,
            url=source.url,
        )


async def fetch_all_rss_feeds(
    sources: Optional[Sequence[NewsSource]] = None,
) -> List[NormalizedNewsItem]:
    """Fetch all configured feeds in parallel and return their items combined, in source order."""
    if sources is None:
        sources = get_all_news_sources()
    if not sources:
        logger.info("news_rss_no_sources_configured")
        return []

    async with RssFetcherService() as service:
        results = await asyncio.gather(*(service.fetch_source(src) for src in sources))

    items: List[NormalizedNewsItem] = []
    for result in results:
        items.extend(result)
    return items
