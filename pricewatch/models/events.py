"""
Observer events emitted by the monitor controller.

Presentation layers subscribe to these instead of reaching into controller
state. Every event carries a full snapshot so subscribers can render
independently.

Models:
    WatchListChanged: Watch set changed (add, remove, or trigger)
    HistoryChanged: Alert history changed (trigger, delete, or clear)
    AlertTriggered: A watch triggered
"""

from datetime import datetime, timezone
from typing import List, Literal, Union

from pydantic import BaseModel, Field

from pricewatch.models.alerts import AlertRecord
from pricewatch.models.watch import Watch


class WatchListChanged(BaseModel):
    """Current watches in insertion order."""

    model_config = {"frozen": True, "extra": "forbid"}

    event_type: Literal["watch_list_changed"] = "watch_list_changed"
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    watches: List[Watch]


class HistoryChanged(BaseModel):
    """Current alert history, newest first."""

    model_config = {"frozen": True, "extra": "forbid"}

    event_type: Literal["history_changed"] = "history_changed"
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    history: List[AlertRecord]


class AlertTriggered(BaseModel):
    """A single watch triggered."""

    model_config = {"frozen": True, "extra": "forbid"}

    event_type: Literal["alert"] = "alert"
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    record: AlertRecord


MonitorEvent = Union[WatchListChanged, HistoryChanged, AlertTriggered]
