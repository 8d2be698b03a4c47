"""HTTP transport used for every call to the NanoDLP controller."""
from __future__ import annotations

import asyncio
import re
import time

import httpx

from nanodlp_bridge.core.config import Settings
from nanodlp_bridge.core.metrics import metrics

_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|\.|$)")


def metric_path(path: str) -> str:
    """Collapse numeric segments so plate and layer ids share one series."""
    return _NUMERIC_SEGMENT.sub("/{n}", path)


class TimeoutTransport(httpx.AsyncBaseTransport):
    """Bounds each request to ``timeout`` seconds and records device metrics.

    Expiry surfaces as :class:`httpx.TimeoutException`. Nothing is logged
    here, callers decide how loud a failure should be.
    """

    def __init__(self, inner: httpx.AsyncBaseTransport | None = None, *, timeout: float = 5.0) -> None:
        self._inner = inner or httpx.AsyncHTTPTransport()
        self._timeout = timeout

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        metric_name = f"device.{request.method} {metric_path(request.url.path)}"
        started = time.perf_counter()
        ok = False
        try:
            response = await asyncio.wait_for(
                self._inner.handle_async_request(request),
                timeout=self._timeout,
            )
            ok = response.status_code < 500
            return response
        except asyncio.TimeoutError as exc:
            raise httpx.TimeoutException(
                f"NanoDLP request timed out after {self._timeout}s: {request.method} {request.url}",
                request=request,
            ) from exc
        finally:
            duration_ms = int((time.perf_counter() - started) * 1000)
            metrics.record(metric_name, ok=ok, duration_ms=duration_ms)

    async def aclose(self) -> None:
        await self._inner.aclose()


def build_device_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared client for the configured controller."""
    return httpx.AsyncClient(
        base_url=settings.api_base,
        transport=TimeoutTransport(transport, timeout=settings.request_timeout),
        timeout=httpx.Timeout(settings.request_timeout),
        headers={"Accept": "application/json"},
    )
