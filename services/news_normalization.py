"""
Normalization helpers shared by the RSS and news API adapters.

Everything here is pure and never raises: bad input degrades to an empty
string, to "now" for dates, or to the item being dropped by
filter_invalid_items.
"""

from __future__ import annotations

import calendar
import hashlib
import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Optional, TypeVar
from urllib.parse import urlparse

from app.models.news_normalized import NormalizedNewsItem

DESCRIPTION_MAX = 200
DESCRIPTION_DISPLAY_MAX = 140
ELLIPSIS = "…"

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_PARTIAL_WORD_RE = re.compile(r"\s+\S*$")
_IMG_PATTERNS = (
    re.compile(r"""<img[^>]+src=["'](https?://[^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<img[^>]+data-src=["'](https?://[^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<img[^>]+data-lazy-src=["'](https?://[^"']+)["']""", re.IGNORECASE),
    re.compile(
        r"""(?:content|url)=["'](https?://[^"']+\.(?:jpg|jpeg|png|webp|gif)(?:\?[^"']*)?)["']""",
        re.IGNORECASE,
    ),
)

T = TypeVar("T")


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def strip_html(html: Any) -> str:
    """Drop tags, collapse whitespace and trim. Non-strings become ''."""
    if not isinstance(html, str) or not html:
        return ""
    text = _HTML_TAG_RE.sub(" ", html)
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: Any, max_len: int) -> str:
    """
    Trim and cap text at max_len characters.

    Longer text is cut at max_len, the trailing partial word is dropped and
    an ellipsis is appended. A single word longer than max_len is cut
    mid-word since there is no boundary to back off to.
    """
    if not isinstance(text, str) or not text:
        return ""
    cleaned = text.strip()
    if len(cleaned) <= max_len:
        return cleaned
    cut = cleaned[:max_len].strip()
    return _TRAILING_PARTIAL_WORD_RE.sub("", cut) + ELLIPSIS


def truncate_description(desc: Any) -> str:
    """Description as stored on the item (200 chars)."""
    return truncate(strip_html(desc), DESCRIPTION_MAX)


def truncate_description_for_card(desc: Any) -> str:
    """Shorter description for card display (140 chars); computed on demand."""
    return truncate(strip_html(desc), DESCRIPTION_DISPLAY_MAX)


def _format_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    iso = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")


def _now_iso() -> str:
    return _format_iso(datetime.now(timezone.utc))


def _parse_date_string(value: str) -> Optional[datetime]:
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        # RFC 822 style, as used by RSS pubDate
        return parsedate_to_datetime(candidate)
    except (TypeError, ValueError, IndexError):
        return None


def to_iso_date(value: Any) -> str:
    """
    Coerce a date-like value to an ISO 8601 UTC string.

    Accepts ISO / RFC 822 strings, datetimes and time.struct_time (as
    produced by feedparser). Missing or unparseable values yield the
    current time, so the result always parses.
    """
    dt: Optional[datetime] = None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, time.struct_time):
            dt = datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
        elif isinstance(value, str):
            dt = _parse_date_string(value)
        if dt is None:
            return _now_iso()
        return _format_iso(dt)
    except (OverflowError, ValueError, OSError):
        return _now_iso()


def published_timestamp(published_at: str) -> float:
    """Epoch seconds for an ISO string produced by to_iso_date (0.0 if unreadable)."""
    dt = _parse_date_string(as_text(published_at))
    if dt is None:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def news_id(url: str, title: str, source: str) -> str:
    """
    Deterministic id for a (source, url, title) triple.

    Ids are internal lookup keys; only stability across runs matters.
    """
    raw = f"{source}:{url}:{title}".encode("utf-8", "ignore")
    return "n-" + hashlib.sha1(raw).hexdigest()[:16]


def is_http_url(value: Any) -> bool:
    if not isinstance(value, str) or not value or _WHITESPACE_RE.search(value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def safe_image_url(value: Any) -> Optional[str]:
    """Return the value stripped if it is an absolute http(s) url, else None."""
    candidate = as_text(value).strip()
    return candidate if is_http_url(candidate) else None


def extract_image_from_html(html: Any) -> Optional[str]:
    """First image url found in an HTML fragment (img src variants, then og-style attributes)."""
    if not isinstance(html, str) or not html:
        return None
    for pattern in _IMG_PATTERNS:
        match = pattern.search(html)
        if match:
            url = safe_image_url(match.group(1))
            if url:
                return url
    return None


def filter_invalid_items(items: Iterable[T]) -> List[T]:
    """Keep items whose trimmed title and url are both non-empty, in order."""
    kept: List[T] = []
    for item in items:
        title = as_text(getattr(item, "title", None)).strip()
        url = as_text(getattr(item, "url", None)).strip()
        if title and url:
            kept.append(item)
    return kept


def build_news_item(
    *,
    title: Any,
    url: Any,
    description: Any,
    content: Any,
    image: Any,
    source: str,
    language: str,
    published: Any,
    category: str,
) -> NormalizedNewsItem:
    """
    Single conversion point from untrusted source fields to a
    NormalizedNewsItem. Validity (non-empty title/url) is checked separately
    by filter_invalid_items.
    """
    clean_title = as_text(title).strip()
    clean_url = as_text(url).strip()
    clean_content = as_text(content).strip()
    return NormalizedNewsItem(
        id=news_id(clean_url, clean_title, source),
        title=clean_title,
        description=truncate_description(description),
        content=clean_content or None,
        image=safe_image_url(image),
        url=clean_url,
        source=source,
        language=language,
        published_at=to_iso_date(published),
        category=category,
    )
