"""
Untrusted raw record shapes, one per source type.

These describe what a source *may* send; nothing here is validated. Every
field is read defensively by services.news_normalization, which is the only
place a raw record becomes a NormalizedNewsItem.
"""

from __future__ import annotations

from typing import Any, List, Mapping, TypedDict

# feedparser entries are FeedParserDict instances (a dict subclass) with
# optional keys such as title, link, id, summary, content, enclosures,
# media_content, media_thumbnail, published_parsed and updated_parsed.
RawRssEntry = Mapping[str, Any]


class RawNewsApiSource(TypedDict, total=False):
    id: Any
    name: Any


class RawNewsApiArticle(TypedDict, total=False):
    title: Any
    description: Any
    content: Any
    url: Any
    urlToImage: Any
    publishedAt: Any
    source: RawNewsApiSource


class RawNewsApiResponse(TypedDict, total=False):
    status: Any
    totalResults: Any
    articles: List[RawNewsApiArticle]
    code: Any
    message: Any
