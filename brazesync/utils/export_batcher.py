"""Pack shaped exports into /users/track requests and send them concurrently."""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from brazesync.models import ShapedExport, TrackBatch
from brazesync.utils.braze_client import BrazeClient, RetryError
from brazesync.utils.logger import logger
from brazesync.utils.utils import generate_uuid

__all__ = ["MAX_BATCH_SIZE", "batch_exports", "send_batch", "dispatch_batches"]

# Braze caps both arrays of a /users/track request at 75 entries
MAX_BATCH_SIZE = 75


def batch_exports(shaped: Iterable[ShapedExport], limit: int = MAX_BATCH_SIZE) -> List[TrackBatch]:
    """Greedily append each entry to the last batch, opening a new one on overflow.

    Entries with neither attributes nor events are skipped.
    """
    batches: List[TrackBatch] = []
    for entry in shaped:
        if entry.is_empty:
            continue
        current = batches[-1] if batches else None
        if (
            current is None
            or len(current.attributes) + len(entry.attributes) > limit
            or len(current.events) + len(entry.events) > limit
        ):
            current = TrackBatch()
            batches.append(current)
        current.attributes.extend(entry.attributes)
        current.events.extend(entry.events)
    return batches


async def send_batch(batch: TrackBatch, client: BrazeClient, request_id: Optional[str] = None) -> None:
    response = await client.fetch(
        "/users/track",
        {"json": batch.model_dump(mode="json")},
        "POST",
        request_id,
    )
    if not response or response.get("message") != "success":
        raise RetryError("Braze API error onEvent, retrying.")


async def dispatch_batches(batches: List[TrackBatch], client: BrazeClient) -> None:
    """Send every batch concurrently and wait for all of them.

    One failing request does not cancel its siblings; once all have settled
    the first failure is re-raised so the caller retries the export.
    """
    request_ids = [generate_uuid() for _ in batches]
    results = await asyncio.gather(
        *(send_batch(batch, client, request_id) for batch, request_id in zip(batches, request_ids)),
        return_exceptions=True,
    )
    failures = [
        (request_id, result)
        for request_id, result in zip(request_ids, results)
        if isinstance(result, BaseException)
    ]
    for request_id, failure in failures:
        logger.error(
            "export.batch_failed",
            extra={"request_id": request_id, "error": str(failure), "batches": len(batches)},
        )
    if failures:
        raise failures[0][1]
