"""Export entrypoints used by the inbound hook routes."""

from __future__ import annotations

from typing import Iterable

from brazesync.models import InboundEvent, TrackBatch
from brazesync.settings import BrazeConfig
from brazesync.utils.braze_client import BrazeClient
from brazesync.utils.clock import Clock, system_clock
from brazesync.utils.export_batcher import batch_exports, dispatch_batches
from brazesync.utils.export_shaper import shape_event
from brazesync.utils.logger import logger


async def on_event(
    event: InboundEvent,
    config: BrazeConfig,
    client: BrazeClient,
    clock: Clock = system_clock,
) -> bool:
    """Export a single event. Returns ``False`` when there was nothing to send."""
    shaped = shape_event(event, config, clock)
    if shaped.is_empty:
        logger.info("export.noop", extra={"event": event.event})
        return False
    await dispatch_batches([TrackBatch(attributes=shaped.attributes, events=shaped.events)], client)
    return True


async def export_events(
    events: Iterable[InboundEvent],
    config: BrazeConfig,
    client: BrazeClient,
    clock: Clock = system_clock,
) -> int:
    """Export many events in as few requests as possible; returns the request count."""
    batches = batch_exports(shape_event(event, config, clock) for event in events)
    if not batches:
        logger.info("export.noop", extra={"event": None})
        return 0
    await dispatch_batches(batches, client)
    return len(batches)
