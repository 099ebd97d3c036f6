from __future__ import annotations

"""Pytest fixtures shared by the unit and route tests.

Braze and PostHog are never contacted: HTTP goes through ``httpx.MockTransport``
and the import jobs capture into an in-memory sink.
"""

import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence
from urllib.parse import parse_qs

import httpx
import pytest

# ---------------------------------------------------------------------------
# Runtime env for the package (read at import time)
# ---------------------------------------------------------------------------

os.environ.setdefault("BRAZE_API_KEY", "test_key")
os.environ.setdefault("BRAZE_ENDPOINT", "US-01")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("API_RATE_LIMIT", "5/minute")

# Ensure project root on PYTHONPATH so `import brazesync` works when pytest is run
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from brazesync.models import OutputEvent  # noqa: E402
from brazesync.settings import BrazeConfig  # noqa: E402
from brazesync.utils.braze_client import BrazeClient  # noqa: E402
from brazesync.utils.clock import FixedClock  # noqa: E402

BRAZE_URL = "https://rest.iad-01.braze.com"

# 2022-03-28 23:59:30 UTC – last UTC midnight is 2022-03-28T00:00:00Z
NOW = datetime(2022, 3, 28, 23, 59, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingSink:
    """EventSink that keeps every captured batch."""

    def __init__(self) -> None:
        self.batches: List[List[OutputEvent]] = []

    async def capture(self, events: Sequence[OutputEvent]) -> None:
        self.batches.append(list(events))

    @property
    def events(self) -> List[OutputEvent]:
        return [event for batch in self.batches for event in batch]


class BrazeStub:
    """Route table for a mocked Braze API.

    ``routes`` maps ``"<METHOD> <path>"`` to either a JSON body (served with
    200) or a callable ``(request) -> httpx.Response``. Unknown routes get 404.
    Every request is recorded in ``calls``.
    """

    def __init__(self, routes: Dict[str, Any] | None = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get(f"{request.method} {request.url.path}")
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    def client(self, **kwargs: Any) -> BrazeClient:
        return BrazeClient(BRAZE_URL, "test_key", transport=httpx.MockTransport(self), **kwargs)

    def bodies(self, method: str, path: str) -> List[Any]:
        return [
            json.loads(call.content)
            for call in self.calls
            if call.method == method and call.url.path == path
        ]

    def queries(self, path: str) -> List[Dict[str, List[str]]]:
        return [parse_qs(call.url.query.decode()) for call in self.calls if call.url.path == path]


def make_config(**overrides: Any) -> BrazeConfig:
    values: Dict[str, Any] = {"apiKey": "test_key", "brazeEndpoint": "US-01"}
    values.update(overrides)
    return BrazeConfig(**values)


def paged(key: str, pages: List[List[Any]]) -> Callable[[httpx.Request], httpx.Response]:
    """Serve ``pages[n-1]`` for ``?page=n`` and an empty page afterwards."""

    def _route(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        rows = pages[page - 1] if page <= len(pages) else []
        return httpx.Response(200, json={key: rows})

    return _route


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def braze() -> BrazeStub:
    return BrazeStub()
