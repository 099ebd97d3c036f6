from __future__ import annotations

"""Unified models namespace – resource catalogue, wire models and enums.

Call-sites import everything from here::

    from brazesync.models import BrazeObject, Item, OutputEvent
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Scalars – the only value types allowed in flattened property bags
# ---------------------------------------------------------------------------

Scalar = Union[bool, int, float, str, None]

# ---------------------------------------------------------------------------
# Braze resource catalogue
# ---------------------------------------------------------------------------


class BrazeObject(str, Enum):
    """Remote resource type; the value is the REST path segment."""
    campaigns = "campaigns"
    canvas = "canvas"
    events = "events"
    new_users = "kpi/new_users"
    active_users = "kpi/dau"
    monthly_active_users = "kpi/mau"
    uninstalls = "kpi/uninstalls"
    feed = "feed"
    segments = "segments"
    sessions = "sessions"


# Page size after which a /list endpoint has more pages
BRAZE_PAGINATION_BY_OBJECT_TYPE: Dict[BrazeObject, int] = {
    BrazeObject.campaigns: 100,
    BrazeObject.canvas: 100,
    BrazeObject.events: 250,
    BrazeObject.feed: 100,
    BrazeObject.segments: 100,
}

# Query parameter naming the object on /details and /data_series endpoints
BRAZE_ID_KEY_BY_OBJECT_TYPE: Dict[BrazeObject, str] = {
    BrazeObject.campaigns: "campaign_id",
    BrazeObject.canvas: "canvas_id",
    BrazeObject.feed: "card_id",
    BrazeObject.segments: "segment_id",
}

# ---------------------------------------------------------------------------
# Import-side models
# ---------------------------------------------------------------------------


class Item(BaseModel):
    """Handle of one remote object as returned by a /list endpoint."""
    id: str
    name: str


class DetailsResponse(BaseModel):
    """Subset of a /details payload used for the activity decision."""
    draft: Optional[bool] = False
    last_entry: Optional[str] = None
    last_sent: Optional[str] = None
    end_at: Optional[str] = None

    @property
    def last_active(self) -> Optional[str]:
        return self.last_entry or self.last_sent or self.end_at


class OutputEvent(BaseModel):
    """Event emitted towards PostHog for one data-series sample."""
    event: str
    properties: Dict[str, Scalar] = Field(default_factory=dict)
    timestamp: str


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    message: str = Field(..., examples=["OK"])


class ImportRunResponse(BaseModel):
    jobs: List[str]
    # Jobs (or item jobs) that failed and were skipped for this pass
    failed: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Re-export sub-module models
# ---------------------------------------------------------------------------

from .events import ExportAttribute, ExportEvent, InboundEvent, ShapedExport, TrackBatch  # noqa: E402
from .series import (  # noqa: E402
    ActiveUsersDataSeries,
    CampaignDataSeries,
    CanvasDataSeries,
    CanvasStats,
    CanvasStep,
    CanvasVariant,
    CustomEventDataSeries,
    DailyUninstallsDataSeries,
    FeedDataSeries,
    MessageVariation,
    MonthlyActiveUsersDataSeries,
    NewUsersDataSeries,
    SegmentDataSeries,
    SessionsDataSeries,
)

__all__ = [
    "Scalar",
    "BrazeObject",
    "BRAZE_PAGINATION_BY_OBJECT_TYPE",
    "BRAZE_ID_KEY_BY_OBJECT_TYPE",
    "Item",
    "DetailsResponse",
    "OutputEvent",
    "MessageResponse",
    "ImportRunResponse",
    # Export
    "InboundEvent",
    "ExportAttribute",
    "ExportEvent",
    "ShapedExport",
    "TrackBatch",
    # Data series
    "MessageVariation",
    "CampaignDataSeries",
    "CanvasVariant",
    "CanvasStep",
    "CanvasStats",
    "CanvasDataSeries",
    "CustomEventDataSeries",
    "NewUsersDataSeries",
    "ActiveUsersDataSeries",
    "MonthlyActiveUsersDataSeries",
    "DailyUninstallsDataSeries",
    "FeedDataSeries",
    "SegmentDataSeries",
    "SessionsDataSeries",
]
