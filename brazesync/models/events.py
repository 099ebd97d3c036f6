from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Arbitrary user properties plus ``external_id``
ExportAttribute = Dict[str, Any]


class InboundEvent(BaseModel):
    """Analytics event as delivered by the ingestion hook."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    event: str
    distinct_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    set_properties: Optional[Dict[str, Any]] = Field(None, alias="$set")
    timestamp: Optional[str] = None


class ExportEvent(BaseModel):
    """Entry of the ``events`` array of a /users/track request."""
    name: str
    time: str
    external_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class ShapedExport(BaseModel):
    """Attributes and events derived from one inbound event."""
    attributes: List[ExportAttribute] = Field(default_factory=list)
    events: List[ExportEvent] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.attributes and not self.events


class TrackBatch(ShapedExport):
    """Body of one POST /users/track request."""
