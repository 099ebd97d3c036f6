"""Activity window: skip objects that have not run in the day being imported."""

from __future__ import annotations

from brazesync.models import BrazeObject, DetailsResponse
from brazesync.utils.braze_client import BrazeClient
from brazesync.utils.clock import ONE_DAY, Clock, system_clock
from brazesync.utils.utils import parse_timestamp


def is_active(details: DetailsResponse | None, clock: Clock = system_clock) -> bool:
    """Decide from a /details payload whether the object is worth importing.

    Drafts and missing payloads are inactive. Without any recency field the
    object is assumed active. Otherwise it is active when its last activity
    lies less than 24h before the last UTC midnight.
    """
    if details is None or details.draft:
        return False
    last_active = details.last_active
    if not last_active:
        return True
    return clock.last_utc_midnight() - parse_timestamp(last_active) < ONE_DAY


async def is_braze_object_active(
    braze_object: BrazeObject,
    id_key: str,
    object_id: str,
    client: BrazeClient,
    clock: Clock = system_clock,
) -> bool:
    response = await client.fetch(f"/{braze_object.value}/details?{id_key}={object_id}", {}, "GET")
    details = DetailsResponse.model_validate(response) if response is not None else None
    return is_active(details, clock)
