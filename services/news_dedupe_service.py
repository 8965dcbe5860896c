"""
Near-duplicate removal across sources.

Two items are the same story when their titles are similar: equal after
normalization, one containing the other, or most of the second title's
words appearing in the first. Every candidate is compared with every item
kept so far; the first occurrence wins.
"""

from __future__ import annotations

import re
import unicodedata
from typing import List, Sequence

from app.models.news_normalized import NormalizedNewsItem

MIN_SUBSTRING_LEN = 10
MIN_WORD_LEN = 3
WORD_OVERLAP_THRESHOLD = 0.7

_WHITESPACE_RE = re.compile(r"\s+")


def _keep_char(ch: str) -> str:
    if ch.isspace() or unicodedata.category(ch)[0] in ("L", "N"):
        return ch
    return " "


def normalize_title_for_compare(title: str) -> str:
    """Lowercase, replace everything but letters/digits/whitespace, collapse spaces."""
    lowered = (title or "").lower()
    cleaned = "".join(_keep_char(ch) for ch in lowered)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def _normalized_titles_similar(na: str, nb: str) -> bool:
    if na == nb:
        return True
    if len(na) < MIN_SUBSTRING_LEN or len(nb) < MIN_SUBSTRING_LEN:
        return False
    if na in nb or nb in na:
        return True
    words_a = {w for w in na.split(" ") if len(w) >= MIN_WORD_LEN}
    words_b = [w for w in nb.split(" ") if len(w) >= MIN_WORD_LEN]
    if not words_b:
        return False
    # Measured against b's words only; not symmetric.
    overlap = sum(1 for w in words_b if w in words_a)
    return overlap / len(words_b) >= WORD_OVERLAP_THRESHOLD


def are_titles_similar(a: str, b: str) -> bool:
    return _normalized_titles_similar(normalize_title_for_compare(a), normalize_title_for_compare(b))


def remove_duplicate_news(items: Sequence[NormalizedNewsItem]) -> List[NormalizedNewsItem]:
    """Drop items whose title is similar to an already kept one; order is preserved."""
    kept: List[NormalizedNewsItem] = []
    kept_titles: List[str] = []
    for item in items:
        candidate = normalize_title_for_compare(item.title)
        if any(_normalized_titles_similar(seen, candidate) for seen in kept_titles):
            continue
        kept.append(item)
        kept_titles.append(candidate)
    return kept
