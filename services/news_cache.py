from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from app.config import settings
from app.core.logging import get_logger

logger = get_logger().bind(module="news_cache")


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """
    get-or-compute cache with a time-to-live per entry.

    Concurrent misses for one key share a single in-flight computation.
    Failed computations are not stored, so the next call retries.
    """

    def __init__(
        self,
        *,
        default_ttl_s: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl_s = default_ttl_s if default_ttl_s is not None else settings.NEWS_CACHE_TTL_S
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._inflight: Dict[str, "asyncio.Task[Any]"] = {}

    def peek(self, key: str) -> Optional[Any]:
        """Return the live cached value for key, or None."""
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry.expires_at:
            return entry.value
        return None

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        *,
        ttl_s: Optional[float] = None,
    ) -> Any:
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry.expires_at:
            logger.debug("news_cache_hit", key=key)
            return entry.value

        task = self._inflight.get(key)
        if task is not None:
            logger.debug("news_cache_join_inflight", key=key)
        else:
            logger.info("news_cache_miss", key=key, expired=entry is not None)
            ttl = ttl_s if ttl_s is not None else self.default_ttl_s
            task = asyncio.ensure_future(self._compute_and_store(key, compute, ttl))
            self._inflight[key] = task
        # A cancelled caller must not cancel the computation other callers share.
        return await asyncio.shield(task)

    async def _compute_and_store(
        self,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        ttl_s: float,
    ) -> Any:
        try:
            value = await compute()
            self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl_s)
            return value
        finally:
            self._inflight.pop(key, None)

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
