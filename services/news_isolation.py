from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List, Optional, TypeVar

from app.core.logging import get_logger

logger = get_logger().bind(module="news_isolation")

T = TypeVar("T")


async def isolate_source(
    operation: Awaitable[List[T]],
    *,
    event: str,
    timeout_s: Optional[float] = None,
    **log_fields: Any,
) -> List[T]:
    """
    Await one source fetch so that its only failure mode is an empty list.

    With timeout_s set, the pending fetch is cancelled once the bound is
    exceeded. Any Exception, timeouts included, is logged as a warning under
    `event` and turned into []. Cancellation of the caller still propagates.
    """
    try:
        if timeout_s is None:
            return list(await operation)
        return list(await asyncio.wait_for(operation, timeout=timeout_s))
    except asyncio.TimeoutError:
        logger.warning(event, error="timeout", error_type="TimeoutError", timeout_s=timeout_s, **log_fields)
        return []
    except Exception as exc:
        logger.warning(event, error=str(exc), error_type=type(exc).__name__, **log_fields)
        return []
