"""Decide what part of an inbound event is exported to Braze.

Two independent gates:

* **attributes** – allow-listed ``$set`` user properties, sent when the event is
  allow-listed *or* ``import_user_attributes_in_all_events`` is on, and only if
  at least one property survives the allow-list;
* **events** – the event itself (minus its ``$set`` sub-object), sent when the
  event name is allow-listed.
"""

from __future__ import annotations

from typing import Any, Dict, List

from brazesync.models import ExportAttribute, ExportEvent, InboundEvent, ShapedExport
from brazesync.settings import BrazeConfig
from brazesync.utils.clock import Clock, system_clock
from brazesync.utils.utils import iso_date_string

__all__ = ["shape_event", "user_property_candidates"]


def user_property_candidates(event: InboundEvent) -> Dict[str, Any]:
    """Top-level ``$set`` wins over ``properties.$set``."""
    if event.set_properties is not None:
        return event.set_properties
    nested = event.properties.get("$set")
    return nested if isinstance(nested, dict) else {}


def shape_event(event: InboundEvent, config: BrazeConfig, clock: Clock = system_clock) -> ShapedExport:
    events_allow_list = config.events_allow_list
    properties_allow_list = set(config.user_properties_allow_list)
    event_is_exported = event.event in events_allow_list

    attributes: List[ExportAttribute] = []
    filtered = {
        key: value
        for key, value in user_property_candidates(event).items()
        if key in properties_allow_list
    }
    if filtered and (config.import_user_attributes_in_all_events or event_is_exported):
        attributes.append({**filtered, "external_id": event.distinct_id})

    events: List[ExportEvent] = []
    if event_is_exported:
        events.append(
            ExportEvent(
                name=event.event,
                time=event.timestamp or iso_date_string(clock.last_utc_midnight()),
                external_id=event.distinct_id,
                properties={key: value for key, value in event.properties.items() if key != "$set"},
            )
        )

    return ShapedExport(attributes=attributes, events=events)
