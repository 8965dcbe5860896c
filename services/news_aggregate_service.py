"""
News aggregation: fetch every source in parallel, merge per category, sort
newest first, drop near-duplicates and cap each bucket.

The whole aggregate is cached for NEWS_CACHE_TTL_S and then recomputed in
one go; callers read it through get_aggregated_news / get_news_by_id.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from app.config import get_news_api_key, settings
from app.core.logging import get_logger
from app.models.news_normalized import NEWS_CATEGORIES, AggregatedNews, NormalizedNewsItem
from services.news_cache import TTLCache
from services.news_dedupe_service import remove_duplicate_news
from services.news_normalization import published_timestamp
from services.newsapi_fetcher_service import NewsApiResult, fetch_news_api_both
from services.rss_fetcher_service import fetch_all_rss_feeds

logger = get_logger().bind(module="news_aggregate_service")

NEWS_AGGREGATE_CACHE_KEY = "news-aggregate"

_news_cache = TTLCache()


def sort_by_published_desc(items: Sequence[NormalizedNewsItem]) -> List[NormalizedNewsItem]:
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(items, key=lambda item: published_timestamp(item.published_at), reverse=True)


def limit(items: Sequence[NormalizedNewsItem], max_items: int) -> List[NormalizedNewsItem]:
    return list(items[:max_items])


def partition_by_category(items: Sequence[NormalizedNewsItem]) -> Dict[str, List[NormalizedNewsItem]]:
    buckets: Dict[str, List[NormalizedNewsItem]] = {category: [] for category in NEWS_CATEGORIES}
    for item in items:
        buckets.setdefault(item.category, []).append(item)
    return buckets


def build_bucket(items: Sequence[NormalizedNewsItem], max_items: int) -> List[NormalizedNewsItem]:
    """Sort newest first, deduplicate, then cap."""
    return limit(remove_duplicate_news(sort_by_published_desc(items)), max_items)


async def _skip_news_api() -> NewsApiResult:
    return NewsApiResult()


async def aggregate_news_uncached(
    *,
    limit_per_category: Optional[int] = None,
) -> AggregatedNews:
    """One full aggregation run, bypassing the cache."""
    per_category = limit_per_category or settings.NEWS_LIMIT_PER_CATEGORY
    api_key = get_news_api_key()

    rss_items, news_api = await asyncio.gather(
        fetch_all_rss_feeds(),
        fetch_news_api_both(api_key) if api_key else _skip_news_api(),
    )

    rss_buckets = partition_by_category(rss_items)
    turkish_raw = [*rss_buckets.get("turkish", []), *news_api.tr]
    global_raw = [*rss_buckets.get("global", []), *news_api.en]

    turkish = build_bucket(turkish_raw, per_category)
    global_ = build_bucket(global_raw, per_category)
    # Built from the capped buckets, not from the raw union.
    all_items = build_bucket([*turkish, *global_], per_category * 2)

    logger.info(
        "news_aggregate_built",
        news_api_enabled=bool(api_key),
        rss_items=len(rss_items),
        news_api_tr=len(news_api.tr),
        news_api_en=len(news_api.en),
        turkish=len(turkish),
        global_=len(global_),
        all=len(all_items),
    )
    return AggregatedNews(turkish=turkish, global_=global_, all=all_items)


def get_news_cache() -> TTLCache:
    return _news_cache


def clear_news_cache() -> None:
    """Drop the cached aggregate (useful for tests)."""
    _news_cache.invalidate()


async def get_aggregated_news(*, cache: Optional[TTLCache] = None) -> AggregatedNews:
    """
    Cached aggregate. Source failures only shrink the result; an exception
    here means the aggregation itself broke.
    """
    cache = cache or _news_cache
    return await cache.get_or_compute(
        NEWS_AGGREGATE_CACHE_KEY,
        aggregate_news_uncached,
        ttl_s=settings.NEWS_CACHE_TTL_S,
    )


async def get_news_by_id(news_id: str, *, cache: Optional[TTLCache] = None) -> Optional[NormalizedNewsItem]:
    """Look an item up in all, then turkish, then global."""
    data = await get_aggregated_news(cache=cache)
    for bucket in (data.all, data.turkish, data.global_):
        for item in bucket:
            if item.id == news_id:
                return item
    return None
