from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from services.news_normalization import (
    DESCRIPTION_DISPLAY_MAX,
    DESCRIPTION_MAX,
    ELLIPSIS,
    build_news_item,
    extract_image_from_html,
    filter_invalid_items,
    news_id,
    published_timestamp,
    safe_image_url,
    strip_html,
    to_iso_date,
    truncate,
    truncate_description,
    truncate_description_for_card,
)


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_strip_html_removes_tags_and_collapses_whitespace():
    assert strip_html("<p>Hello <b>world</b></p>\n\n<br/>  again ") == "Hello world again"


def test_strip_html_non_string_yields_empty():
    assert strip_html(None) == ""
    assert strip_html(42) == ""
    assert strip_html("") == ""


def test_strip_html_is_idempotent():
    samples = [
        "<div><p>Yeni <a href='x'>ürün</a></p></div>",
        "a < b > c",
        "<<b>>nested<</b>>",
        "plain text   with   spaces",
        "unclosed <tag",
    ]
    for sample in samples:
        once = strip_html(sample)
        assert strip_html(once) == once


def test_truncate_returns_short_text_trimmed():
    assert truncate("short", 10) == "short"
    assert truncate("   padded   ", 10) == "padded"
    assert truncate(None, 10) == ""


def test_truncate_backs_off_to_word_boundary():
    assert truncate("hello world foo bar", 11) == "hello" + ELLIPSIS
    assert truncate("alpha beta gamma delta", 13) == "alpha beta" + ELLIPSIS


def test_truncate_single_long_word_is_cut():
    assert truncate("abcdefghijkl", 5) == "abcde" + ELLIPSIS


def test_truncate_never_exceeds_bound_or_splits_words():
    text = (
        "Yapay zeka girişimleri bu yıl rekor yatırım aldı ve sektördeki "
        "rekabet giderek artıyor; uzmanlar yeni düzenlemelerin yolda olduğunu söylüyor."
    )
    for max_len in range(1, len(text) + 5):
        result = truncate(text, max_len)
        assert len(result) <= max_len + len(ELLIPSIS)
        if result.endswith(ELLIPSIS):
            body = result[: -len(ELLIPSIS)]
            assert text.startswith(body)
            if " " in text[:max_len].strip():
                # cut landed right before a space, never inside a word
                assert text[len(body)] == " "


def test_description_caps():
    long_html = "<p>" + " ".join(["kelime"] * 80) + "</p>"
    stored = truncate_description(long_html)
    card = truncate_description_for_card(long_html)
    assert "<" not in stored
    assert len(stored) <= DESCRIPTION_MAX + 1
    assert len(card) <= DESCRIPTION_DISPLAY_MAX + 1
    assert len(card) < len(stored)


def test_to_iso_date_parses_iso_and_rfc822():
    assert to_iso_date("2024-01-01T12:00:00Z") == "2024-01-01T12:00:00.000Z"
    assert to_iso_date("2024-01-01T15:00:00+03:00") == "2024-01-01T12:00:00.000Z"
    assert to_iso_date("Mon, 01 Jan 2024 12:00:00 GMT") == "2024-01-01T12:00:00.000Z"


def test_to_iso_date_accepts_datetime_and_struct_time():
    assert to_iso_date(datetime(2024, 5, 6, 7, 8, 9)) == "2024-05-06T07:08:09.000Z"
    assert to_iso_date(time.gmtime(0)) == "1970-01-01T00:00:00.000Z"


def test_to_iso_date_defaults_to_now():
    before = datetime.now(timezone.utc) - timedelta(seconds=1)
    for value in (None, "", "not a date", 12345, object()):
        parsed = _parse(to_iso_date(value))
        assert parsed >= before
        assert parsed <= datetime.now(timezone.utc) + timedelta(seconds=1)


def test_to_iso_date_is_idempotent():
    for value in ("2024-02-29T23:59:59.999Z", "Tue, 10 Sep 2024 08:30:00 +0300", None):
        once = to_iso_date(value)
        assert to_iso_date(once) == once


def test_published_timestamp_orders_dates():
    older = published_timestamp("2024-01-01T00:00:00.000Z")
    newer = published_timestamp("2024-01-02T00:00:00.000Z")
    assert newer > older
    assert published_timestamp("garbage") == 0.0


def test_news_id_is_deterministic_and_sensitive_to_each_field():
    base = news_id("https://example.com/a", "Title", "Webrazzi")
    assert base == news_id("https://example.com/a", "Title", "Webrazzi")
    assert base.startswith("n-")
    assert news_id("https://example.com/b", "Title", "Webrazzi") != base
    assert news_id("https://example.com/a", "Title 2", "Webrazzi") != base
    assert news_id("https://example.com/a", "Title", "ShiftDelete") != base


def test_filter_invalid_items_keeps_order_and_valid_only():
    items = [
        SimpleNamespace(title="One", url="https://example.com/1"),
        SimpleNamespace(title="   ", url="https://example.com/2"),
        SimpleNamespace(title="Three", url=""),
        SimpleNamespace(title=None, url="https://example.com/4"),
        SimpleNamespace(title="Five", url="https://example.com/5"),
    ]
    kept = filter_invalid_items(items)
    assert [i.title for i in kept] == ["One", "Five"]


def test_safe_image_url_accepts_only_absolute_http():
    assert safe_image_url("https://cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"
    assert safe_image_url(" http://cdn.example.com/a.jpg ") == "http://cdn.example.com/a.jpg"
    assert safe_image_url("/relative/a.jpg") is None
    assert safe_image_url("ftp://cdn.example.com/a.jpg") is None
    assert safe_image_url("https://") is None
    assert safe_image_url(None) is None


def test_extract_image_from_html_variants():
    assert (
        extract_image_from_html('<p><img class="hero" src="https://cdn.example.com/a.jpg"></p>')
        == "https://cdn.example.com/a.jpg"
    )
    assert (
        extract_image_from_html("<img data-lazy-src='https://cdn.example.com/lazy.png'>")
        == "https://cdn.example.com/lazy.png"
    )
    assert (
        extract_image_from_html('<meta content="https://cdn.example.com/og.webp?w=600">')
        == "https://cdn.example.com/og.webp?w=600"
    )
    assert extract_image_from_html('<img src="/local.jpg">') is None
    assert extract_image_from_html(None) is None


def test_build_news_item_cleans_untrusted_fields():
    item = build_news_item(
        title="  Yeni model tanıtıldı  ",
        url=" https://example.com/haber ",
        description="<p>" + "uzun " * 100 + "</p>",
        content="   ",
        image="javascript:alert(1)",
        source="Webrazzi",
        language="tr",
        published="Mon, 01 Jan 2024 12:00:00 GMT",
        category="turkish",
    )
    assert item.title == "Yeni model tanıtıldı"
    assert item.url == "https://example.com/haber"
    assert item.id == news_id("https://example.com/haber", "Yeni model tanıtıldı", "Webrazzi")
    assert len(item.description) <= DESCRIPTION_MAX + 1
    assert item.content is None
    assert item.image is None
    assert item.published_at == "2024-01-01T12:00:00.000Z"
