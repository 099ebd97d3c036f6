"""FastAPI dependency providers for configuration and external clients."""

from __future__ import annotations

from functools import lru_cache

from brazesync.settings import BrazeConfig, load_config
from brazesync.utils.braze_client import BrazeClient
from brazesync.utils.capture import EventSink, PosthogCapture
from brazesync.utils.clock import Clock, system_clock


@lru_cache(maxsize=1)
def get_config() -> BrazeConfig:
    return load_config()


_cached_client: BrazeClient | None = None


def get_braze_client() -> BrazeClient:
    """Return the process-wide Braze client.

    The client keeps its own per-event-loop connection pool, so sharing one
    instance across requests is safe.
    """
    global _cached_client

    if _cached_client is None:
        _cached_client = BrazeClient.from_config(get_config())
    return _cached_client


def get_event_sink() -> EventSink:
    return PosthogCapture()


def get_clock() -> Clock:
    return system_clock
