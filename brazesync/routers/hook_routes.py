"""Inbound hook – analytics events in, Braze /users/track requests out."""

import os
from typing import List

from fastapi import APIRouter, Depends, Header, HTTPException, status

from brazesync.cron.daily_import import build_context, run_every_day
from brazesync.models import ImportRunResponse, InboundEvent, MessageResponse
from brazesync.settings import BrazeConfig
from brazesync.utils.braze_client import BrazeClient
from brazesync.utils.capture import EventSink
from brazesync.utils.clock import Clock
from brazesync.utils.dependencies import get_braze_client, get_clock, get_config, get_event_sink
from brazesync.utils.exporter import export_events, on_event
from brazesync.utils.limiter import limiter

router = APIRouter(prefix="/v1", tags=["events"])

CRON_SECRET = os.getenv("CRON_SECRET")


@router.post("/events/hook", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.exempt
async def hook_event(
    event: InboundEvent,
    config: BrazeConfig = Depends(get_config),
    client: BrazeClient = Depends(get_braze_client),
    clock: Clock = Depends(get_clock),
):
    sent = await on_event(event, config, client, clock)
    return MessageResponse(message="Exported 1 event" if sent else "Nothing to export")


@router.post("/events/batch", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.exempt
async def hook_events(
    events: List[InboundEvent],
    config: BrazeConfig = Depends(get_config),
    client: BrazeClient = Depends(get_braze_client),
    clock: Clock = Depends(get_clock),
):
    requests = await export_events(events, config, client, clock)
    return MessageResponse(message=f"Sent {requests} request(s) for {len(events)} events")


@router.post("/import/run", response_model=ImportRunResponse)
async def run_import(
    authorization: str | None = Header(None),
    config: BrazeConfig = Depends(get_config),
    client: BrazeClient = Depends(get_braze_client),
    sink: EventSink = Depends(get_event_sink),
    clock: Clock = Depends(get_clock),
):
    # Cron over HTTP: when a secret is configured the caller must present it
    if CRON_SECRET and authorization != f"Bearer {CRON_SECRET}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_cron_secret")

    ctx = build_context(config, client=client, sink=sink, clock=clock)
    jobs = await run_every_day(ctx)
    return ImportRunResponse(
        jobs=[job.value for job in jobs],
        failed=[job.value for job, _ in ctx.failed],
    )
