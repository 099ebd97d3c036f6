"""PostHog batch capture for imported Braze series."""

from __future__ import annotations

from typing import Protocol, Sequence

import httpx

from brazesync import POSTHOG_API_KEY, POSTHOG_HOST
from brazesync.models import OutputEvent
from brazesync.utils.braze_client import RetryError
from brazesync.utils.logger import logger

__all__ = ["EventSink", "PosthogCapture"]


class EventSink(Protocol):
    async def capture(self, events: Sequence[OutputEvent]) -> None: ...


class PosthogCapture:
    """POST ``{"api_key", "batch"}`` to ``<host>/batch/``."""

    def __init__(
        self,
        host: str = POSTHOG_HOST,
        api_key: str | None = POSTHOG_API_KEY,
        *,
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.host = host.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def capture(self, events: Sequence[OutputEvent]) -> None:
        if not events:
            return
        if not self.api_key:
            logger.warning("capture.skipped", extra={"reason": "POSTHOG_API_KEY not set", "count": len(events)})
            return

        payload = {
            "api_key": self.api_key,
            "batch": [event.model_dump(mode="json") for event in events],
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(f"{self.host}/batch/", json=payload)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise RetryError("PostHog capture failed, retrying.") from exc
        logger.info("capture.sent", extra={"count": len(events)})
