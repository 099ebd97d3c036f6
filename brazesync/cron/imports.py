from __future__ import annotations

"""Braze → PostHog import jobs.

List jobs (``track_campaigns`` …) page through a Braze /list endpoint and hand
every item to the scheduler as its own unit of work (``track_campaign`` …), so
one failing object never aborts its siblings. Item jobs check the activity
window, fetch one day of data series ending at the last UTC midnight,
transform it and capture the resulting events.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple
from urllib.parse import quote

from brazesync.models import (
    BRAZE_ID_KEY_BY_OBJECT_TYPE,
    BRAZE_PAGINATION_BY_OBJECT_TYPE,
    BrazeObject,
    Item,
    OutputEvent,
)
from brazesync.settings import BrazeConfig
from brazesync.utils.activity import is_braze_object_active
from brazesync.utils.braze_client import BrazeClient
from brazesync.utils.capture import EventSink
from brazesync.utils.clock import Clock, system_clock
from brazesync.utils.logger import logger
from brazesync.utils.pagination import get_events, get_items, paginate_items
from brazesync.utils.transformers import (
    transform_active_users_data_series,
    transform_campaign_data_series,
    transform_canvas_data_series,
    transform_custom_event_data_series,
    transform_daily_uninstalls_data_series,
    transform_feed_data_series,
    transform_monthly_active_users_data_series,
    transform_new_users_data_series,
    transform_segment_data_series,
    transform_sessions_data_series,
)
from brazesync.utils.utils import iso_date_string

__all__ = [
    "JobName",
    "JobContext",
    "Scheduler",
    "LocalScheduler",
    "JOBS",
    "ITEM_JOBS",
    "get_data_series",
]


class JobName(str, Enum):
    track_campaigns = "track_campaigns"
    track_campaign = "track_campaign"
    track_canvases = "track_canvases"
    track_canvas = "track_canvas"
    track_custom_events = "track_custom_events"
    track_custom_event = "track_custom_event"
    track_kpis = "track_kpis"
    track_feeds = "track_feeds"
    track_feed = "track_feed"
    track_segments = "track_segments"
    track_segment = "track_segment"
    track_sessions = "track_sessions"


# Jobs that handle a single listed object
ITEM_JOBS = frozenset(
    {
        JobName.track_campaign,
        JobName.track_canvas,
        JobName.track_custom_event,
        JobName.track_feed,
        JobName.track_segment,
    }
)


class Scheduler(Protocol):
    async def run_now(self, job: JobName, payload: Dict[str, Any], ctx: "JobContext") -> None: ...


@dataclass
class JobContext:
    """Collaborators shared by every job of one import pass."""

    config: BrazeConfig
    client: BrazeClient
    sink: EventSink
    scheduler: Scheduler
    clock: Clock = system_clock
    # Units of work that failed during this pass, as (job, payload)
    failed: List[Tuple[JobName, Dict[str, Any]]] = field(default_factory=list)

    async def run_now(self, job: JobName, payload: Optional[Dict[str, Any]] = None) -> None:
        await self.scheduler.run_now(job, payload or {}, self)

    async def isolate(
        self,
        job: JobName,
        payload: Dict[str, Any],
        step: Awaitable[None],
        event: str = "import.job_failed",
    ) -> bool:
        """Await *step*; a failure is logged and recorded instead of raised.

        Returns ``False`` when the step failed.
        """
        try:
            await step
        except Exception:  # noqa: BLE001 – one unit must not abort its siblings
            self.failed.append((job, payload))
            logger.exception(event, extra={"job": job.value, "payload": payload})
            return False
        return True


Job = Callable[[Dict[str, Any], JobContext], Awaitable[None]]
Transform = Callable[..., List[OutputEvent]]


class LocalScheduler:
    """Run jobs in-process, one after the other.

    Failures of item jobs are logged and recorded on the context, then dropped
    for this pass. Other jobs raise to the caller, which isolates them per
    resource type (see ``run_every_day``).
    """

    async def run_now(self, job: JobName, payload: Dict[str, Any], ctx: JobContext) -> None:
        if job in ITEM_JOBS:
            await ctx.isolate(job, payload, JOBS[job](payload, ctx), "import.item_failed")
        else:
            await JOBS[job](payload, ctx)


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------


async def get_data_series(
    braze_object: BrazeObject,
    query: str,
    client: BrazeClient,
    clock: Clock = system_clock,
) -> Optional[Any]:
    """Fetch the data series of the day ending at the last UTC midnight."""
    ending_date = iso_date_string(clock.last_utc_midnight())
    response = await client.fetch(
        f"/{braze_object.value}/data_series?{query}&ending_date={ending_date}", {}, "GET"
    )
    return response.get("data") if response else None


async def _track_series(
    ctx: JobContext,
    braze_object: BrazeObject,
    query: str,
    transform: Transform,
    *args: Any,
) -> None:
    data = await get_data_series(braze_object, query, ctx.client, ctx.clock)
    if not data:
        return
    events = transform(data, *args)
    await ctx.sink.capture(events)


async def _track_object(
    ctx: JobContext,
    braze_object: BrazeObject,
    item: Item,
    query: str,
    transform: Transform,
) -> None:
    id_key = BRAZE_ID_KEY_BY_OBJECT_TYPE[braze_object]
    if not await is_braze_object_active(braze_object, id_key, item.id, ctx.client, ctx.clock):
        logger.info("import.inactive", extra={"object": braze_object.value, "id": item.id})
        return
    await _track_series(ctx, braze_object, query, transform, item.name)


async def _fan_out(ctx: JobContext, items: Sequence[Item], job: JobName) -> None:
    for item in items:
        await ctx.run_now(job, item.model_dump())


async def _list_and_fan_out(ctx: JobContext, braze_object: BrazeObject, job: JobName) -> None:
    items = await paginate_items(
        braze_object,
        BRAZE_PAGINATION_BY_OBJECT_TYPE[braze_object],
        get_items,
        ctx.client,
    )
    await _fan_out(ctx, items, job)


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


async def track_campaigns(_: Dict[str, Any], ctx: JobContext) -> None:
    await _list_and_fan_out(ctx, BrazeObject.campaigns, JobName.track_campaign)


async def track_campaign(payload: Dict[str, Any], ctx: JobContext) -> None:
    item = Item.model_validate(payload)
    await _track_object(
        ctx,
        BrazeObject.campaigns,
        item,
        f"campaign_id={item.id}&length=1",
        transform_campaign_data_series,
    )


# ---------------------------------------------------------------------------
# Canvases
# ---------------------------------------------------------------------------


async def track_canvases(_: Dict[str, Any], ctx: JobContext) -> None:
    await _list_and_fan_out(ctx, BrazeObject.canvas, JobName.track_canvas)


async def track_canvas(payload: Dict[str, Any], ctx: JobContext) -> None:
    item = Item.model_validate(payload)
    await _track_object(
        ctx,
        BrazeObject.canvas,
        item,
        f"canvas_id={item.id}&length=1&include_variant_breakdown=true&include_step_breakdown=true",
        transform_canvas_data_series,
    )


# ---------------------------------------------------------------------------
# Custom events
# ---------------------------------------------------------------------------


async def track_custom_events(_: Dict[str, Any], ctx: JobContext) -> None:
    events = await paginate_items(
        BrazeObject.events,
        BRAZE_PAGINATION_BY_OBJECT_TYPE[BrazeObject.events],
        get_events,
        ctx.client,
    )
    await _fan_out(ctx, events, JobName.track_custom_event)


async def track_custom_event(payload: Dict[str, Any], ctx: JobContext) -> None:
    # Custom events have no /details endpoint, so no activity check
    item = Item.model_validate(payload)
    await _track_series(
        ctx,
        BrazeObject.events,
        f"event={quote(item.name, safe='')}&length=1&unit=day",
        transform_custom_event_data_series,
        item.name,
    )


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------

_KPI_SERIES = (
    (BrazeObject.new_users, transform_new_users_data_series),
    (BrazeObject.active_users, transform_active_users_data_series),
    (BrazeObject.monthly_active_users, transform_monthly_active_users_data_series),
    (BrazeObject.uninstalls, transform_daily_uninstalls_data_series),
)


async def track_kpis(_: Dict[str, Any], ctx: JobContext) -> None:
    # Each KPI series is its own unit: a malformed one must not drop the others
    for braze_object, transform in _KPI_SERIES:
        await ctx.isolate(
            JobName.track_kpis,
            {"series": braze_object.value},
            _track_series(ctx, braze_object, "length=1", transform),
            "import.series_failed",
        )


# ---------------------------------------------------------------------------
# News feed cards
# ---------------------------------------------------------------------------


async def track_feeds(_: Dict[str, Any], ctx: JobContext) -> None:
    await _list_and_fan_out(ctx, BrazeObject.feed, JobName.track_feed)


async def track_feed(payload: Dict[str, Any], ctx: JobContext) -> None:
    item = Item.model_validate(payload)
    await _track_object(
        ctx,
        BrazeObject.feed,
        item,
        f"card_id={item.id}&length=1&unit=day",
        transform_feed_data_series,
    )


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


async def track_segments(_: Dict[str, Any], ctx: JobContext) -> None:
    await _list_and_fan_out(ctx, BrazeObject.segments, JobName.track_segment)


async def track_segment(payload: Dict[str, Any], ctx: JobContext) -> None:
    item = Item.model_validate(payload)
    await _track_object(
        ctx,
        BrazeObject.segments,
        item,
        f"segment_id={item.id}&length=1",
        transform_segment_data_series,
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


async def track_sessions(_: Dict[str, Any], ctx: JobContext) -> None:
    await _track_series(ctx, BrazeObject.sessions, "length=1&unit=day", transform_sessions_data_series)


JOBS: Dict[JobName, Job] = {
    JobName.track_campaigns: track_campaigns,
    JobName.track_campaign: track_campaign,
    JobName.track_canvases: track_canvases,
    JobName.track_canvas: track_canvas,
    JobName.track_custom_events: track_custom_events,
    JobName.track_custom_event: track_custom_event,
    JobName.track_kpis: track_kpis,
    JobName.track_feeds: track_feeds,
    JobName.track_feed: track_feed,
    JobName.track_segments: track_segments,
    JobName.track_segment: track_segment,
    JobName.track_sessions: track_sessions,
}
