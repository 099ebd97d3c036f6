import json
import logging

import httpx
import pytest

from brazesync.models import OutputEvent
from brazesync.utils.braze_client import RetryError
from brazesync.utils.capture import PosthogCapture

POSTHOG_HOST = "https://posthog.example.com"

EVENTS = [
    OutputEvent(event="Braze Sessions", properties={"count": 5}, timestamp="2022-03-28T00:00:00.000Z"),
    OutputEvent(event="Braze KPI: Daily Active Users", properties={"count": 2}, timestamp="2022-03-28T00:00:00.000Z"),
]


def _capture(handler, api_key="phc_test", host=f"{POSTHOG_HOST}/"):
    return PosthogCapture(host, api_key, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_capture_posts_batch_with_api_key():
    requests = []

    def _handler(request):
        requests.append(request)
        return httpx.Response(200, json={"status": 1})

    await _capture(_handler).capture(EVENTS)

    (request,) = requests
    assert request.method == "POST"
    assert str(request.url) == f"{POSTHOG_HOST}/batch/"
    assert json.loads(request.content) == {
        "api_key": "phc_test",
        "batch": [
            {"event": "Braze Sessions", "properties": {"count": 5}, "timestamp": "2022-03-28T00:00:00.000Z"},
            {
                "event": "Braze KPI: Daily Active Users",
                "properties": {"count": 2},
                "timestamp": "2022-03-28T00:00:00.000Z",
            },
        ],
    }


@pytest.mark.asyncio
async def test_empty_sequence_sends_nothing():
    requests = []
    await _capture(lambda request: requests.append(request) or httpx.Response(200)).capture([])
    assert requests == []


@pytest.mark.asyncio
async def test_missing_api_key_skips_with_warning(caplog):
    requests = []
    sink = _capture(lambda request: requests.append(request) or httpx.Response(200), api_key=None)

    with caplog.at_level(logging.WARNING, logger="brazesync"):
        await sink.capture(EVENTS)

    assert requests == []
    assert [r.getMessage() for r in caplog.records] == ["capture.skipped"]


@pytest.mark.asyncio
async def test_error_status_is_retryable():
    sink = _capture(lambda request: httpx.Response(502, text="bad gateway"))
    with pytest.raises(RetryError, match="PostHog capture failed, retrying."):
        await sink.capture(EVENTS)


@pytest.mark.asyncio
async def test_network_error_is_retryable():
    def _handler(request):
        raise httpx.ConnectError("Network error", request=request)

    with pytest.raises(RetryError, match="PostHog capture failed, retrying."):
        await _capture(_handler).capture(EVENTS)
