"""Braze data series → PostHog events.

Every transformer is pure: it validates the raw response into the typed
schemas of :mod:`brazesync.models.series`, emits one :class:`OutputEvent` per
time bucket and never touches its input.

Nested stat blocks are flattened into ``:``-joined keys::

    messages.ios_push[0] = {"variation_name": "V", "sent": 1}  →  "ios_push:V:sent": 1
    messages.email[0]    = {"sent": 1}                          →  "email:sent": 1

Canvas stats add their own namespace in front (``total_stats:``,
``variant_stats:<variant>:``, ``step_stats:<step>:``). Two variations of one
channel without a ``variation_name`` map to the same keys; the last one wins.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Mapping, Sequence, Type

from pydantic import BaseModel, TypeAdapter

from brazesync.models import (
    ActiveUsersDataSeries,
    CampaignDataSeries,
    CanvasDataSeries,
    CanvasStats,
    CustomEventDataSeries,
    DailyUninstallsDataSeries,
    FeedDataSeries,
    MonthlyActiveUsersDataSeries,
    NewUsersDataSeries,
    OutputEvent,
    Scalar,
    SegmentDataSeries,
    SessionsDataSeries,
)
from brazesync.models.series import MessageStats

__all__ = [
    "transform_campaign_data_series",
    "transform_canvas_data_series",
    "transform_custom_event_data_series",
    "transform_new_users_data_series",
    "transform_active_users_data_series",
    "transform_monthly_active_users_data_series",
    "transform_daily_uninstalls_data_series",
    "transform_feed_data_series",
    "transform_segment_data_series",
    "transform_sessions_data_series",
]

Properties = Dict[str, Scalar]


@lru_cache(maxsize=None)
def _list_adapter(model: Type[BaseModel]) -> TypeAdapter:
    return TypeAdapter(List[model])  # type: ignore[valid-type]


def _validate_list(model: Type[BaseModel], series: Sequence[Any]) -> List[Any]:
    return _list_adapter(model).validate_python(list(series))


# ---------------------------------------------------------------------------
# Flattening helpers
# ---------------------------------------------------------------------------


def _prepend_keys(stats: Mapping[str, Scalar], prefix: str) -> Properties:
    return {f"{prefix}{key}": value for key, value in stats.items()}


def _flatten_messages(messages: MessageStats, prefix: str = "") -> Properties:
    """Flatten per-channel variations as ``<prefix><channel>[:<variation>]:<field>``."""
    result: Properties = {}
    for channel, variations in messages.items():
        for variation in variations:
            channel_key = f"{channel}:{variation.variation_name}" if variation.variation_name else channel
            result.update(_prepend_keys(variation.stats(), f"{prefix}{channel_key}:"))
    return result


def _flatten_canvas_stats(stats: CanvasStats) -> Properties:
    result: Properties = _prepend_keys(stats.total_stats, "total_stats:")

    for variant in stats.variant_stats.values():
        result.update(_prepend_keys(variant.stats(), f"variant_stats:{variant.name}:"))

    for step in stats.step_stats.values():
        step_prefix = f"step_stats:{step.name}:"
        result.update(_flatten_messages(step.messages, step_prefix))
        result.update(_prepend_keys(step.stats(), step_prefix))

    return result


# ---------------------------------------------------------------------------
# Campaigns & canvases
# ---------------------------------------------------------------------------


def transform_campaign_data_series(series: Sequence[Any], name: str) -> List[OutputEvent]:
    events: List[OutputEvent] = []
    for item in _validate_list(CampaignDataSeries, series):
        properties: Properties = item.stats()
        properties.update(_flatten_messages(item.messages))
        events.append(OutputEvent(event=f"Braze campaign: {name}", properties=properties, timestamp=item.time))
    return events


def transform_canvas_data_series(series: CanvasDataSeries | Mapping[str, Any], name: str) -> List[OutputEvent]:
    canvas = CanvasDataSeries.model_validate(series)
    return [
        OutputEvent(event=f"Braze canvas: {name}", properties=_flatten_canvas_stats(stats), timestamp=stats.time)
        for stats in canvas.stats
    ]


# ---------------------------------------------------------------------------
# Single-counter series
# ---------------------------------------------------------------------------


def _counter_events(
    series: Sequence[Any],
    model: Type[BaseModel],
    event: str,
    field: str,
) -> List[OutputEvent]:
    return [
        OutputEvent(event=event, properties={"count": getattr(item, field)}, timestamp=item.time)
        for item in _validate_list(model, series)
    ]


def transform_custom_event_data_series(series: Sequence[Any], event: str) -> List[OutputEvent]:
    return _counter_events(series, CustomEventDataSeries, f"Braze event: {event}", "count")


def transform_new_users_data_series(series: Sequence[Any]) -> List[OutputEvent]:
    return _counter_events(series, NewUsersDataSeries, "Braze KPI: Daily New Users", "new_users")


def transform_active_users_data_series(series: Sequence[Any]) -> List[OutputEvent]:
    return _counter_events(series, ActiveUsersDataSeries, "Braze KPI: Daily Active Users", "dau")


def transform_monthly_active_users_data_series(series: Sequence[Any]) -> List[OutputEvent]:
    return _counter_events(series, MonthlyActiveUsersDataSeries, "Braze KPI: Monthly Active Users", "mau")


def transform_daily_uninstalls_data_series(series: Sequence[Any]) -> List[OutputEvent]:
    return _counter_events(series, DailyUninstallsDataSeries, "Braze KPI: Daily Uninstalls", "uninstalls")


def transform_segment_data_series(series: Sequence[Any], name: str) -> List[OutputEvent]:
    return _counter_events(series, SegmentDataSeries, f"Braze Segment: {name}", "size")


def transform_sessions_data_series(series: Sequence[Any]) -> List[OutputEvent]:
    return _counter_events(series, SessionsDataSeries, "Braze Sessions", "sessions")


def transform_feed_data_series(series: Sequence[Any], name: str) -> List[OutputEvent]:
    """News feed cards keep their four counters under their own names."""
    return [
        OutputEvent(
            event=f"Braze News Feed Card: {name}",
            properties={
                "clicks": item.clicks,
                "impressions": item.impressions,
                "unique_clicks": item.unique_clicks,
                "unique_impressions": item.unique_impressions,
            },
            timestamp=item.time,
        )
        for item in _validate_list(FeedDataSeries, series)
    ]
