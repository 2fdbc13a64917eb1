"""
Watches API endpoints.

Provides:
    GET    /api/watches          - Active watches with last price and range status
    POST   /api/watches          - Register a watch
    DELETE /api/watches/{symbol} - Remove a watch

Validation failures are mapped to status codes by the app's exception
handlers: 400 for an invalid symbol or band, 409 for a duplicate symbol, 404
for an unknown symbol.
"""

from datetime import datetime
from typing import List, Optional, Union

import structlog
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from pricewatch.api.dependencies import get_controller
from pricewatch.models.health import WatchStatus
from pricewatch.monitor.controller import MonitorController

logger = structlog.get_logger(__name__)

router = APIRouter()


class WatchCreateRequest(BaseModel):
    """Request body for registering a watch."""

    symbol: str = Field(..., description="Symbol to watch, case-insensitive")
    lower: Union[str, int, float] = Field(..., description="Lower bound of the band")
    upper: Union[str, int, float] = Field(..., description="Upper bound of the band")

    model_config = {
        "json_schema_extra": {
            "example": {"symbol": "BTCUSDT", "lower": "60000", "upper": "70000"}
        }
    }


class WatchItem(BaseModel):
    """Model for a single watch."""

    symbol: str
    lower: str
    upper: str
    created_at: datetime
    last_price: Optional[str] = None
    in_range: Optional[bool] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "symbol": "BTCUSDT",
                "lower": "60000",
                "upper": "70000",
                "created_at": "2025-01-26T12:32:41Z",
                "last_price": "65123.40",
                "in_range": True,
            }
        }
    }

    @classmethod
    def from_status(cls, watch_status: WatchStatus) -> "WatchItem":
        watch = watch_status.watch
        return cls(
            symbol=watch.symbol,
            lower=str(watch.lower),
            upper=str(watch.upper),
            created_at=watch.created_at,
            last_price=(
                str(watch_status.last_price)
                if watch_status.last_price is not None
                else None
            ),
            in_range=watch_status.in_range,
        )


class WatchListResponse(BaseModel):
    """Response model for the watch list."""

    watches: List[WatchItem]
    total: int


@router.get(
    "/watches",
    response_model=WatchListResponse,
    summary="List active watches",
    description="Active watches in insertion order, joined with the last price seen.",
)
async def list_watches(
    controller: MonitorController = Depends(get_controller),
) -> WatchListResponse:
    items = [WatchItem.from_status(s) for s in controller.watch_statuses()]
    return WatchListResponse(watches=items, total=len(items))


@router.post(
    "/watches",
    response_model=WatchItem,
    status_code=status.HTTP_201_CREATED,
    summary="Register a watch",
)
async def add_watch(
    body: WatchCreateRequest,
    controller: MonitorController = Depends(get_controller),
) -> WatchItem:
    watch = await controller.add_watch(body.symbol, body.lower, body.upper)
    return WatchItem.from_status(
        WatchStatus.of(watch, controller.current_price(watch.symbol))
    )


@router.delete(
    "/watches/{symbol}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a watch",
)
async def remove_watch(
    symbol: str,
    controller: MonitorController = Depends(get_controller),
) -> Response:
    await controller.remove_watch(symbol)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
