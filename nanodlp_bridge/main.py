"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from uuid import uuid4

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import MutableHeaders
from starlette.requests import Request

from nanodlp_bridge.api.error_handlers import register_exception_handlers
from nanodlp_bridge.api.router import api_router
from nanodlp_bridge.core.config import Settings, get_settings
from nanodlp_bridge.core.logging import LOGGER_NAME, configure_logging
from nanodlp_bridge.core.metrics import metrics
from nanodlp_bridge.core.request_context import request_context
from nanodlp_bridge.services.registry import ServiceRegistry

logger = logging.getLogger(LOGGER_NAME)


class RequestIdMiddleware:
    # SSE connections stay open for minutes; do not alert on their duration.
    _METRIC_THRESHOLD_OVERRIDES = {
        "/api/status/stream": {"avg_ms": 600_000},
    }

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        path = scope.get("path") or ""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id
            await send(message)

        with request_context(request_id):
            await self.app(scope, receive, send_wrapper)

        duration_ms = int((time.perf_counter() - start) * 1000)
        if status_code < 400:
            metric_name = f"api.{path}"
            metrics.record(metric_name, ok=True, duration_ms=duration_ms)
            overrides = self._METRIC_THRESHOLD_OVERRIDES.get(path, {})
            if metrics.should_alert(metric_name, **overrides):
                logger.warning("Metric alert for %s (slow or error rate)", metric_name)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    start_polling: bool = True,
) -> FastAPI:
    """Build the application; ``transport`` replaces the device HTTP transport."""

    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage startup and shutdown of background services."""
        registry: ServiceRegistry = app.state.services
        await registry.startup()
        try:
            yield
        finally:
            await registry.shutdown()

    app = FastAPI(
        title="NanoDLP Bridge API",
        description="Cached status and control API for NanoDLP resin printers",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = ServiceRegistry(settings, transport=transport, start_polling=start_polling)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)
    register_exception_handlers(app)
    return app
