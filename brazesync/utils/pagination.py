"""Page-number pagination over Braze /list endpoints."""

from __future__ import annotations

from typing import Awaitable, Callable, List

from brazesync.models import BrazeObject, Item
from brazesync.utils.braze_client import BrazeClient

PageFetcher = Callable[[BrazeObject, int, BrazeClient], Awaitable[List[Item]]]


async def paginate_items(
    braze_object: BrazeObject,
    paginate_after: int,
    callback: PageFetcher,
    client: BrazeClient,
) -> List[Item]:
    """Fetch pages 1, 2, … until one comes back shorter than *paginate_after*.

    A page of exactly *paginate_after* items always triggers one more fetch,
    which may be empty.
    """
    items: List[Item] = []
    page = 0
    while True:
        page += 1
        batch = await callback(braze_object, page, client)
        items.extend(batch)
        if len(batch) < paginate_after:
            return items


async def get_items(braze_object: BrazeObject, page: int, client: BrazeClient) -> List[Item]:
    """List one page of campaigns/canvases/feed cards/segments as ``Item``s."""
    response = await client.fetch(f"/{braze_object.value}/list?page={page}", {}, "GET")
    if not response:
        return []
    return [Item(id=row["id"], name=row["name"]) for row in response.get(braze_object.value) or []]


async def get_events(_: BrazeObject, page: int, client: BrazeClient) -> List[Item]:
    """List one page of custom event names; the name doubles as the id."""
    response = await client.fetch(f"/events/list?page={page}", {}, "GET")
    if not response:
        return []
    return [Item(id=name, name=name) for name in response.get("events") or []]
