import logging

import httpx
import pytest

from brazesync.utils.braze_client import BrazeClient, RetryError
from tests.conftest import BRAZE_URL


def _client(handler, **kwargs):
    return BrazeClient(BRAZE_URL, "secret", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_success_returns_json_and_sends_auth_headers():
    seen = {}

    def _handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"campaigns": []})

    body = await _client(_handler).fetch("/campaigns/list?page=1")
    assert body == {"campaigns": []}
    assert seen == {"auth": "Bearer secret", "url": f"{BRAZE_URL}/campaigns/list?page=1"}


@pytest.mark.asyncio
async def test_trailing_slash_is_stripped():
    client = BrazeClient(f"{BRAZE_URL}/", "secret")
    assert client.base_url == BRAZE_URL


@pytest.mark.asyncio
async def test_server_error_is_retryable():
    client = _client(lambda request: httpx.Response(500, json={}))
    with pytest.raises(RetryError, match="Service is down, retry later"):
        await client.fetch("/users/track", {"json": {}}, "POST")


@pytest.mark.asyncio
async def test_network_error_is_retryable():
    def _handler(request):
        raise httpx.ConnectError("Network error", request=request)

    with pytest.raises(RetryError, match="Fetch failed, retrying."):
        await _client(_handler).fetch("/users/track", {"json": {}}, "POST")


@pytest.mark.asyncio
async def test_client_error_returns_none_and_logs_errors(caplog):
    def _handler(request):
        return httpx.Response(
            400,
            json={"errors": [{"type": "'external_id' or 'braze_id' or 'user_alias' is required", "index": 0}]},
        )

    with caplog.at_level(logging.ERROR, logger="brazesync"):
        assert await _client(_handler).fetch("/users/track", {"json": {}}, "POST") is None
    assert any(record.getMessage() == "braze.api_error" for record in caplog.records)


@pytest.mark.asyncio
async def test_unparsable_success_body_returns_none():
    client = _client(lambda request: httpx.Response(200, text="<html>"))
    assert await client.fetch("/sessions/data_series") is None


@pytest.mark.asyncio
async def test_slow_call_logs_warning(caplog, monkeypatch):
    ticks = iter([0.0, 10.0])
    monkeypatch.setattr("brazesync.utils.braze_client.perf_counter", lambda: next(ticks))
    client = _client(lambda request: httpx.Response(200, json={}), slow_call_seconds=3)

    with caplog.at_level(logging.WARNING, logger="brazesync"):
        assert await client.fetch("/kpi/dau/data_series") == {}
    assert [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING] == ["braze.slow_call"]


@pytest.mark.asyncio
async def test_aclose_resets_pool():
    client = _client(lambda request: httpx.Response(200, json={}))
    await client.fetch("/sessions/data_series")
    await client.aclose()
    assert client._client is None
