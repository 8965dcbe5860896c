#!/usr/bin/env python3
"""
news_sources_check.py

Lightweight CLI to make sure configs/news_sources.yml parses, and optionally
to run one uncached aggregation against the live sources.
Exits with code 0 even if no sources are configured; invalid entries are
already reported by the loader.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections import Counter
from pathlib import Path

THIS_FILE = Path(__file__).resolve()
REPO_ROOT = THIS_FILE.parent.parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from app.config import settings  # noqa: E402
from app.core.logging import configure_logging, get_logger  # noqa: E402
from app.core.request_id import with_run_id  # noqa: E402
from app.models.news_sources import (  # noqa: E402
    clear_news_sources_cache,
    get_all_news_sources,
)
from services.news_aggregate_service import aggregate_news_uncached  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate news sources and optionally fetch them once.")
    parser.add_argument("--config", type=Path, default=None, help="Path to a news_sources.yml file.")
    parser.add_argument("--fetch", action="store_true", help="Run one aggregation and log bucket sizes.")
    return parser.parse_args(argv)


async def _run_fetch() -> None:
    logger = get_logger()
    data = await aggregate_news_uncached()
    logger.info(
        "news_sources_check_fetch_ok",
        turkish=len(data.turkish),
        global_=len(data.global_),
        all=len(data.all),
        sources=sorted({item.source for item in data.all}),
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(service_name="worker")
    logger = get_logger()

    if args.config is not None:
        settings.NEWS_SOURCES_PATH = args.config

    with with_run_id():
        clear_news_sources_cache()
        sources = get_all_news_sources()

        if not sources:
            logger.warning("news_sources_check_no_sources_loaded")
        else:
            logger.info(
                "news_sources_check_ok",
                total=len(sources),
                per_category=dict(Counter(source.category for source in sources)),
                per_language=dict(Counter(source.language for source in sources)),
            )

        if args.fetch:
            asyncio.run(_run_fetch())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
