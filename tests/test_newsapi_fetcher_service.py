from __future__ import annotations

import asyncio
from typing import Any, Dict, List
from unittest.mock import MagicMock

import httpx
import pytest

from app.config import settings
from services import news_isolation, newsapi_fetcher_service
from services.newsapi_fetcher_service import (
    NewsApiFetcherService,
    fetch_news_api_both,
    normalize_payload,
)


def _article(idx: int, **overrides: Any) -> Dict[str, Any]:
    article: Dict[str, Any] = {
        "source": {"id": None, "name": f"Outlet {idx}"},
        "title": f"Headline number {idx}",
        "description": f"<p>Description {idx}</p>",
        "content": f"Content {idx} [+123 chars]",
        "url": f"https://news.example/{idx}",
        "urlToImage": f"https://img.news.example/{idx}.jpg",
        "publishedAt": f"2024-03-0{idx}T08:00:00Z",
    }
    article.update(overrides)
    return article


def _ok(articles: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"status": "ok", "totalResults": len(articles), "articles": articles}


def test_normalize_payload_maps_language_branch():
    payload = _ok([
        _article(1),
        _article(2, urlToImage="not-a-url", description=None),
        _article(3, url=""),
        _article(4, title=None),
    ])

    items = normalize_payload(payload, "tr")

    assert [i.title for i in items] == ["Headline number 1", "Headline number 2"]
    first, second = items
    assert first.source == "NewsAPI TR"
    assert first.category == "turkish"
    assert first.language == "tr"
    assert first.description == "Description 1"
    assert first.image == "https://img.news.example/1.jpg"
    assert first.published_at == "2024-03-01T08:00:00.000Z"
    assert second.image is None
    # description falls back to content
    assert second.description == "Content 2 [+123 chars]"

    en_items = normalize_payload(_ok([_article(5)]), "en")
    assert en_items[0].source == "NewsAPI EN"
    assert en_items[0].category == "global"


def test_description_falls_back_to_content_only_when_missing():
    items = normalize_payload(
        _ok([_article(1, description=""), _article(2, description=None)]),
        "en",
    )

    assert items[0].description == ""
    assert items[0].content == "Content 1 [+123 chars]"
    assert items[1].description == "Content 2 [+123 chars]"


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "error", "code": "apiKeyInvalid", "message": "bad key"},
        {"status": "ok", "articles": None},
        {"status": "ok", "articles": {"title": "not a list"}},
        ["not", "a", "dict"],
        None,
    ],
)
def test_normalize_payload_rejects_unexpected_shapes(payload):
    assert normalize_payload(payload, "en") == []


@pytest.mark.asyncio
async def test_fetch_news_api_both_isolates_languages(monkeypatch):
    async def fake_fetch_payload(self, language):
        if language == "tr":
            raise httpx.ConnectError("dns failure")
        return _ok([_article(1), _article(2)])

    fake_logger = MagicMock()
    monkeypatch.setattr(NewsApiFetcherService, "_fetch_payload", fake_fetch_payload)
    monkeypatch.setattr(news_isolation, "logger", fake_logger)

    result = await fetch_news_api_both("secret-key")

    assert result.tr == []
    assert len(result.en) == 2
    assert all(i.category == "global" for i in result.en)
    fake_logger.warning.assert_called_once()
    args, kwargs = fake_logger.warning.call_args
    assert args[0] == "news_api_fetch_failed"
    assert kwargs["language"] == "tr"


@pytest.mark.asyncio
async def test_fetch_news_api_both_times_out_one_branch(monkeypatch):
    async def fake_fetch_payload(self, language):
        if language == "en":
            await asyncio.sleep(10)
        return _ok([_article(1)])

    monkeypatch.setattr(settings, "NEWS_FETCH_TIMEOUT_S", 0.05)
    monkeypatch.setattr(NewsApiFetcherService, "_fetch_payload", fake_fetch_payload)
    monkeypatch.setattr(news_isolation, "logger", MagicMock())

    result = await asyncio.wait_for(fetch_news_api_both("secret-key"), timeout=2)

    assert len(result.tr) == 1
    assert result.en == []


@pytest.mark.asyncio
async def test_fetch_news_api_over_http_sends_key_in_header(monkeypatch):
    real_client = httpx.AsyncClient
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get("language") == "en":
            return httpx.Response(401, json={"status": "error", "code": "apiKeyInvalid"})
        return httpx.Response(200, json=_ok([_article(1)]))

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    fake_logger = MagicMock()
    monkeypatch.setattr(newsapi_fetcher_service.httpx, "AsyncClient", client_factory)
    monkeypatch.setattr(news_isolation, "logger", fake_logger)

    result = await fetch_news_api_both("secret-key")

    assert len(result.tr) == 1
    assert result.en == []
    assert len(requests) == 2
    for request in requests:
        assert request.headers["x-api-key"] == "secret-key"
        assert "secret-key" not in str(request.url)
        assert request.url.params["category"] == "technology"
        assert request.url.params["pageSize"] == "30"
    _, kwargs = fake_logger.warning.call_args
    assert "secret-key" not in kwargs["error"]
