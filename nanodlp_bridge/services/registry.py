"""Service registry that wires all application services together."""
import asyncio
import logging
from datetime import datetime, timezone

import httpx

from nanodlp_bridge.core.config import Settings
from nanodlp_bridge.core.request_context import request_context
from nanodlp_bridge.core.tasks import LifecycleManager
from nanodlp_bridge.core.transport import build_device_client
from nanodlp_bridge.services.health_service import HealthService
from nanodlp_bridge.services.nanodlp_client import NanoDlpClient
from nanodlp_bridge.services.status_stream_service import StatusStreamService

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Container object for dependency injection."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        start_polling: bool = True,
    ) -> None:
        self.settings = settings
        self.started_at = datetime.now(timezone.utc)
        self.client = NanoDlpClient(settings, build_device_client(settings, transport=transport))
        self.status_stream_service = StatusStreamService(
            self.client,
            poll_interval=settings.status_poll_interval,
        )
        self.health_service = HealthService(self.status_stream_service, started_at=self.started_at)
        self._start_polling = start_polling
        self._startup_lock = asyncio.Lock()
        self._shutdown_lock = asyncio.Lock()
        self._lifecycle = LifecycleManager(name="service-registry", logger=logger)

    async def startup(self) -> None:
        async with self._startup_lock:
            with request_context("bg:registry"):
                logger.info("Starting background services for %s", self.settings.api_base)
                steps = [self.status_stream_service.start] if self._start_polling else []
                await self._lifecycle.start(steps)
                logger.info("Background services started")

    async def shutdown(self) -> None:
        async with self._shutdown_lock:
            with request_context("bg:registry"):
                logger.info("Stopping background services")
                await self._lifecycle.stop([self.status_stream_service.shutdown, self.client.aclose])
                await self._lifecycle.cancel_tracked()
                logger.info("Background services stopped")
