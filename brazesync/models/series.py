"""Typed Braze data-series response schemas.

Stat blocks carry an open-ended set of counters (Braze adds fields per channel
and per conversion event), so those models keep unknown keys as extras and only
declare the fields the flattening logic needs for namespacing.

Schemas:
    campaigns: https://www.braze.com/docs/api/endpoints/export/campaigns/get_campaign_analytics/
    canvas:    https://www.braze.com/docs/api/endpoints/export/canvas/get_canvas_analytics/
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from brazesync.models import Scalar


class _StatBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    def stats(self) -> Dict[str, Scalar]:
        """Scalar counters of this block.

        Declared (namespacing) fields and nested containers are not included.
        """
        return {
            key: value
            for key, value in (self.model_extra or {}).items()
            if not isinstance(value, (dict, list))
        }


class MessageVariation(_StatBlock):
    variation_name: Optional[str] = None


# Per-channel message stats: channel (``ios_push``, ``email``…) → variations
MessageStats = Dict[str, List[MessageVariation]]


class CampaignDataSeries(_StatBlock):
    time: str
    messages: MessageStats = Field(default_factory=dict)


class CanvasVariant(_StatBlock):
    name: str


class CanvasStep(_StatBlock):
    name: str
    messages: MessageStats = Field(default_factory=dict)


class CanvasStats(BaseModel):
    time: str
    total_stats: Dict[str, Scalar] = Field(default_factory=dict)
    variant_stats: Dict[str, CanvasVariant] = Field(default_factory=dict)
    step_stats: Dict[str, CanvasStep] = Field(default_factory=dict)


class CanvasDataSeries(BaseModel):
    name: Optional[str] = None
    stats: List[CanvasStats] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Single-counter series
# ---------------------------------------------------------------------------


class CustomEventDataSeries(BaseModel):
    time: str
    count: Scalar = None


class NewUsersDataSeries(BaseModel):
    time: str
    new_users: Scalar = None


class ActiveUsersDataSeries(BaseModel):
    time: str
    dau: Scalar = None


class MonthlyActiveUsersDataSeries(BaseModel):
    time: str
    mau: Scalar = None


class DailyUninstallsDataSeries(BaseModel):
    time: str
    uninstalls: Scalar = None


class FeedDataSeries(BaseModel):
    time: str
    clicks: Scalar = None
    impressions: Scalar = None
    unique_clicks: Scalar = None
    unique_impressions: Scalar = None


class SegmentDataSeries(BaseModel):
    time: str
    size: Scalar = None


class SessionsDataSeries(BaseModel):
    time: str
    sessions: Scalar = None
