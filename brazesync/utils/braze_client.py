"""Authenticated Braze REST client with the retry semantics the jobs rely on.

``fetch`` never raises for "soft" failures: anything that is not worth retrying
(4xx, unparsable body) comes back as ``None`` and callers treat it as *no data*.
Network failures and 5xx responses raise :class:`RetryError` so the caller's
scheduler or hook runner re-invokes the whole operation.
"""

from __future__ import annotations

import asyncio
from time import perf_counter
from typing import Any, Dict, Mapping, Optional

import httpx

from brazesync.settings import BrazeConfig
from brazesync.utils.logger import logger

__all__ = ["BrazeClient", "RetryError"]


class RetryError(Exception):
    """Transient failure – the whole operation should be retried later."""


class BrazeClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 5.0,
        slow_call_seconds: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url[:-1] if base_url.endswith("/") else base_url
        self._api_key = api_key
        self.timeout = timeout
        self.slow_call_seconds = slow_call_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_config(cls, config: BrazeConfig, **kwargs: Any) -> "BrazeClient":
        return cls(
            config.base_url,
            config.api_key,
            timeout=config.request_timeout,
            slow_call_seconds=config.slow_call_seconds,
            **kwargs,
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Return an ``httpx.AsyncClient`` bound to the running event loop.

        A pooled client created on another (possibly closed) loop fails on its
        first I/O, so the pool is cached per loop rather than per process.
        """
        current_loop = asyncio.get_running_loop()
        if (
            self._client is None
            or self._loop is not current_loop
            or self._loop.is_closed()
        ):
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )
            self._loop = current_loop
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._loop is asyncio.get_running_loop():
            await self._client.aclose()
        self._client = None
        self._loop = None

    async def fetch(
        self,
        endpoint: str,
        options: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        request_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Call ``<base_url><endpoint>`` and return the parsed JSON body.

        *options* are passed through to :meth:`httpx.AsyncClient.request`
        (``json=``, ``params=`` …).
        """
        client = self._get_client()
        start = perf_counter()
        try:
            response = await client.request(method, endpoint, **dict(options or {}))
        except httpx.HTTPError as exc:
            logger.error(
                "braze.fetch_failed",
                extra={"endpoint": endpoint, "method": method, "request_id": request_id, "error": str(exc)},
            )
            raise RetryError("Fetch failed, retrying.") from exc
        finally:
            elapsed = perf_counter() - start
            if elapsed > self.slow_call_seconds:
                logger.warning(
                    "braze.slow_call",
                    extra={
                        "endpoint": endpoint,
                        "method": method,
                        "request_id": request_id,
                        "duration_ms": round(elapsed * 1000, 2),
                    },
                )

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("errors"):
            for error in body["errors"]:
                logger.error(
                    "braze.api_error",
                    extra={"endpoint": endpoint, "request_id": request_id, "error": error},
                )

        if response.is_success:
            return body if isinstance(body, dict) else None
        if response.is_server_error:
            raise RetryError("Service is down, retry later")
        return None
