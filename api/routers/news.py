from __future__ import annotations

from fastapi import APIRouter, HTTPException, Path
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.models.news_normalized import AggregatedNews, NormalizedNewsItem
from services.news_aggregate_service import get_aggregated_news, get_news_by_id

logger = get_logger().bind(module="news_router")

router = APIRouter(
    prefix="/news",
    tags=["news"],
)


@router.get("/aggregate", response_model=AggregatedNews, response_model_by_alias=True)
async def get_news_aggregate():
    try:
        data = await get_aggregated_news()
    except Exception as exc:
        # Readers get empty buckets rather than an error page.
        logger.error("news_aggregate_failed", error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=200, content={"turkish": [], "global": [], "all": []})
    return data


@router.get("/{news_id}", response_model=NormalizedNewsItem)
async def get_news_item(
    news_id: str = Path(..., min_length=1, max_length=128),
) -> NormalizedNewsItem:
    item = await get_news_by_id(news_id)
    if item is None:
        raise HTTPException(status_code=404, detail="News item not found.")
    return item
