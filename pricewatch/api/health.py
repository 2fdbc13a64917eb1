"""
Health and price API endpoints.

Provides:
    GET /api/health          - Feed connection and storage status
    GET /api/prices/{symbol} - Last price seen for a symbol
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from pricewatch.api.dependencies import get_controller
from pricewatch.models.health import FeedHealth
from pricewatch.models.watch import canonical_symbol
from pricewatch.monitor.controller import MonitorController

logger = structlog.get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str = "unknown"
    feed: Optional[FeedHealth] = None
    storage_degraded: bool = False
    active_watches: int = 0
    history_size: int = 0
    timestamp: datetime

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "healthy",
                "feed": {
                    "source": "binance",
                    "url": "wss://fstream.binance.com/stream?streams=!markPrice@arr@1s",
                    "status": "connected",
                    "message_count": 1234,
                    "tick_count": 512000,
                    "skipped_records": 0,
                    "reconnect_count": 0,
                },
                "storage_degraded": False,
                "active_watches": 3,
                "history_size": 12,
                "timestamp": "2025-01-26T12:34:56Z",
            }
        }
    }


class PriceResponse(BaseModel):
    """Response model for a symbol's last price."""

    symbol: str
    price: str


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Get system health",
)
async def get_health(
    controller: MonitorController = Depends(get_controller),
) -> HealthResponse:
    feed = controller.feed_health()

    overall = "healthy"
    if controller.storage_degraded:
        overall = "degraded"
    if feed is not None and not feed.status.is_healthy:
        overall = "degraded"

    return HealthResponse(
        status=overall,
        feed=feed,
        storage_degraded=controller.storage_degraded,
        active_watches=len(controller.list_watches()),
        history_size=len(controller.list_history()),
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/prices/{symbol}",
    response_model=PriceResponse,
    summary="Get the last price for a symbol",
)
async def get_price(
    symbol: str,
    controller: MonitorController = Depends(get_controller),
) -> PriceResponse:
    price = controller.current_price(symbol)
    if price is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No price seen for {canonical_symbol(symbol)}",
        )
    return PriceResponse(symbol=canonical_symbol(symbol), price=str(price))
