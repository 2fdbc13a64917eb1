"""
Alert history API endpoints.

Provides:
    GET    /api/history          - Recent alerts, newest first
    DELETE /api/history/{index}  - Delete one record (0 is newest)
    DELETE /api/history          - Delete all records
"""

from datetime import datetime
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from pricewatch.api.dependencies import get_controller
from pricewatch.models.alerts import AlertRecord
from pricewatch.monitor.controller import MonitorController

logger = structlog.get_logger(__name__)

router = APIRouter()


class AlertItem(BaseModel):
    """Model for a single alert record."""

    alert_id: str
    timestamp: datetime
    symbol: str
    price: str
    breach: str
    lower: Optional[str] = None
    upper: Optional[str] = None
    message: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "alert_id": "9b1c0a52-8a3f-4c55-9d7e-0d7d8f7b1e11",
                "timestamp": "2025-01-26T12:32:41Z",
                "symbol": "BTCUSDT",
                "price": "71000.00",
                "breach": "upper",
                "lower": "60000",
                "upper": "70000",
                "message": "BTCUSDT price 71000.00 above upper bound 70000",
            }
        }
    }

    @classmethod
    def from_record(cls, record: AlertRecord) -> "AlertItem":
        return cls(
            alert_id=record.alert_id,
            timestamp=record.timestamp,
            symbol=record.symbol,
            price=str(record.price),
            breach=record.breach.value,
            lower=str(record.lower) if record.lower is not None else None,
            upper=str(record.upper) if record.upper is not None else None,
            message=record.message,
        )


class HistoryResponse(BaseModel):
    """Response model for the history endpoint."""

    records: List[AlertItem]
    returned: int
    total: int


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Get alert history",
    description="Most recent alerts first. Defaults to the configured display limit.",
)
async def get_history(
    limit: Optional[int] = Query(
        None,
        ge=1,
        description="Maximum number of records (default: display limit)",
    ),
    controller: MonitorController = Depends(get_controller),
) -> HistoryResponse:
    effective_limit = limit if limit is not None else controller.display_limit
    records = controller.list_history(effective_limit)
    return HistoryResponse(
        records=[AlertItem.from_record(r) for r in records],
        returned=len(records),
        total=len(controller.list_history()),
    )


@router.delete(
    "/history/{index}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete one alert record",
)
async def delete_history_entry(
    index: int,
    controller: MonitorController = Depends(get_controller),
) -> Response:
    await controller.delete_history_entry(index)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/history",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear alert history",
)
async def clear_history(
    controller: MonitorController = Depends(get_controller),
) -> Response:
    await controller.clear_history()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
