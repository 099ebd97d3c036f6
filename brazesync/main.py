"""Entry-point for the connector's ASGI app.

This module constructs the FastAPI instance, wires global middleware,
registers the route groups, and exposes the `app` variable that serverless
hosts (and ``uvicorn brazesync.main:app``) import.
"""

from __future__ import annotations

import logging
import os
import traceback
from contextvars import ContextVar
from time import perf_counter
from typing import Awaitable, Callable, Dict

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi.middleware import SlowAPIMiddleware

from brazesync import APP_ENV
from brazesync.utils.braze_client import RetryError
from brazesync.utils.limiter import limiter
from brazesync.utils.logger import configure_logging, logger

# Seconds the hook sender should wait before re-delivering after a RetryError
RETRY_AFTER_SECONDS = 60


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request-level context vars for structured logging."""

    _request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:  # type: ignore[override]
        start = perf_counter()
        request_id = request.headers.get("X-Request-Id", os.urandom(4).hex())
        token = self._request_id_ctx.set(request_id)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration_ms = (perf_counter() - start) * 1000
            logger.info(
                "request.complete",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                    "request_id": request_id,
                },
            )
            self._request_id_ctx.reset(token)
        return response


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Braze Connector API",
        version="0.1.0",
        docs_url="/docs" if APP_ENV != "production" else None,
        redoc_url=None,
        openapi_url="/openapi.json" if APP_ENV != "production" else None,
    )

    # Global middleware
    app.add_middleware(RequestContextMiddleware)
    # Rate limiting middleware (SlowAPI expects limiter via app.state)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    from slowapi.errors import RateLimitExceeded  # noqa: WPS433  (runtime import)
    from slowapi import _rate_limit_exceeded_handler

    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Transient Braze/PostHog failures → ask the sender to redeliver later
    @app.exception_handler(RetryError)
    async def retry_later(request: Request, exc: RetryError) -> JSONResponse:
        logger.warning("request.retry", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(
            status_code=503,
            content={"detail": str(exc)},
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )

    # Global exception handler - logs full tracebacks for any unhandled 500s
    @app.exception_handler(Exception)
    async def log_unhandled_exceptions(request: Request, exc: Exception):
        error_logger = logging.getLogger("uvicorn.error")
        error_logger.error(
            "UNHANDLED %s at %s %s\n%s",
            type(exc).__name__,
            request.method,
            request.url.path,
            "".join(traceback.format_tb(exc.__traceback__)),
        )
        raise exc

    # Health check
    @app.get("/")
    async def root() -> Dict[str, str]:  # pylint: disable=unused-variable
        return {"status": "ok"}

    from brazesync.routers import hook_routes  # noqa: WPS433 (runtime import)

    app.include_router(hook_routes.router)

    return app


# The object ASGI hosts import
app = create_app()
