from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

NewsLanguage = Literal["tr", "en"]
NewsCategory = Literal["turkish", "global"]

NEWS_LANGUAGES: tuple[str, ...] = ("tr", "en")
NEWS_CATEGORIES: tuple[str, ...] = ("turkish", "global")


class NormalizedNewsItem(BaseModel):
    """
    Canonical news record shared by every source adapter.

    Instances are only built by services.news_normalization; raw feed or
    API fields never travel past the adapter that fetched them.
    """

    id: str
    title: str
    # Plain text, at most 200 characters plus the ellipsis marker.
    description: str = ""
    content: Optional[str] = None
    image: Optional[str] = None
    url: str
    source: str
    language: NewsLanguage
    # ISO 8601 UTC, e.g. 2024-01-01T12:00:00.000Z
    published_at: str
    category: NewsCategory


class AggregatedNews(BaseModel):
    """Result of one aggregation run: three deduplicated, newest-first buckets."""

    model_config = ConfigDict(populate_by_name=True)

    turkish: List[NormalizedNewsItem] = Field(default_factory=list)
    # "global" is a keyword; serialize with by_alias=True to get it back.
    global_: List[NormalizedNewsItem] = Field(default_factory=list, alias="global")
    all: List[NormalizedNewsItem] = Field(default_factory=list)
