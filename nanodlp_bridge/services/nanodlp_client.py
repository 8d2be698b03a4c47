"""Facade over one NanoDLP controller: caches, status and device calls."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import httpx

from nanodlp_bridge.core.config import Settings
from nanodlp_bridge.core.exceptions import DeviceCommandError, DeviceUnavailableError
from nanodlp_bridge.core.request_context import request_context
from nanodlp_bridge.core.tasks import BackgroundJobs
from nanodlp_bridge.models import PlateRecord, StatusSnapshot
from nanodlp_bridge.services.control_command_service import ControlCommandService
from nanodlp_bridge.services.device_info_service import DeviceInfoService
from nanodlp_bridge.services.plate_cache import PlateListCache
from nanodlp_bridge.services.plate_resolver import PlateResolver
from nanodlp_bridge.services.state_handler import NanoDlpStateHandler
from nanodlp_bridge.services.status_poller import StatusPoller
from nanodlp_bridge.services.thumbnail_cache import ThumbnailCache
from nanodlp_bridge.services.utils.thumbnails import LAYER_SIZE, generate_placeholder, resize_layer_2d

logger = logging.getLogger(__name__)


class NanoDlpClient:
    """Owns every cache and the device HTTP client for one backend session."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.http = http
        self.plates = PlateListCache(http, ttl=settings.plates_cache_ttl, clock=clock)
        self.resolver = PlateResolver(
            self.plates,
            ttl=settings.plates_cache_ttl,
            startup_grace=settings.plate_resolve_startup_grace,
            clock=clock,
        )
        self.thumbnails = ThumbnailCache(
            http,
            self.resolver,
            ttl=settings.thumbnail_cache_ttl,
            placeholder_ttl=settings.thumbnail_placeholder_ttl,
            clock=clock,
        )
        self.state_handler = NanoDlpStateHandler()
        self.poller = StatusPoller(
            http,
            self.resolver,
            self.state_handler,
            retry_delay=settings.status_retry_delay,
        )
        self.commands = ControlCommandService(self)
        self.device_info = DeviceInfoService(http, self.poller)
        self._jobs = BackgroundJobs(name="nanodlp-client", logger=logger)

    # Status

    async def get_status(self) -> Dict[str, Any]:
        return await self.poller.get_status()

    async def get_status_snapshot(self) -> StatusSnapshot:
        return await self.poller.get_status_snapshot()

    # Files

    async def list_items(self, page_size: int = 100, page_index: int = 0) -> Dict[str, Any]:
        plates = await self.plates.get()
        files = [plate.to_file_entry() for plate in plates]
        logger.debug("list_items: %d files", len(files))
        return {
            "files": files,
            "dirs": [],
            "page_index": page_index,
            "page_size": page_size,
        }

    async def get_file_metadata(self, file_path: str) -> Dict[str, Any]:
        record = await self.resolver.find_by_path(file_path)
        if record is not None:
            return record.to_metadata()
        return {
            "file_data": {
                "path": file_path,
                "name": file_path,
                "last_modified": 0,
                "parent_path": "",
            },
        }

    async def get_file_thumbnail(self, file_path: str, size: str = "Small") -> bytes:
        return await self.thumbnails.get_thumbnail(file_path, size)

    async def get_plate_layer_image(self, plate_id: int, layer: int) -> bytes:
        """Layer preview scaled to 800x480; a placeholder when unavailable."""
        try:
            response = await self.http.get(f"/static/plates/{plate_id}/{layer}.png")
        except httpx.HTTPError as exc:
            logger.warning("Layer image %s/%s request failed: %s", plate_id, layer, exc)
            return generate_placeholder(*LAYER_SIZE)
        if response.status_code != 200 or not response.content:
            logger.debug("Layer image %s/%s returned HTTP %s", plate_id, layer, response.status_code)
            return generate_placeholder(*LAYER_SIZE)
        return await asyncio.to_thread(resize_layer_2d, response.content)

    # Device commands

    async def command(
        self,
        name: str,
        path: str,
        *,
        method: str = "GET",
        data: Optional[Dict[str, str]] = None,
        accept_any_status: bool = False,
    ) -> httpx.Response:
        """Send a command; non-200 raises :class:`DeviceCommandError` unless accepted."""
        logger.info("NanoDLP %s request: %s %s", name, method, path)
        try:
            response = await self.http.request(method, path, data=data)
        except httpx.HTTPError as exc:
            logger.warning("NanoDLP %s failed: %s", name, exc)
            raise DeviceUnavailableError(f"NanoDLP {name} failed: {exc}") from exc
        if response.status_code != 200 and not accept_any_status:
            logger.warning("NanoDLP %s failed: %s %s", name, response.status_code, response.text[:200])
            raise DeviceCommandError(name, response.status_code, response.text)
        return response

    def schedule_plate_prefetch(self, *, plate_id: Optional[int], file_path: str) -> None:
        """Refresh the plate list after a print start and remember the started plate."""
        self._jobs.spawn(self._prefetch_plates(plate_id, file_path), name="prefetch-plates")

    async def _prefetch_plates(self, plate_id: Optional[int], file_path: str) -> None:
        with request_context("bg:prefetch-plates"):
            plates = await self.plates.get(force_refresh=True)
            found: Optional[PlateRecord] = None
            if plate_id is not None:
                found = next((plate for plate in plates if plate.plate_id == plate_id), None)
            else:
                normalized = file_path.lstrip("/").strip().lower()
                found = next(
                    (
                        plate
                        for plate in plates
                        if plate.resolved_path.strip().lower() == normalized
                        or plate.name.strip().lower() == normalized
                    ),
                    None,
                )
            if found is not None and found.plate_id is not None:
                self.resolver.remember(found)
                logger.debug("Prefetched and resolved %s -> %s", plate_id or file_path, found.name)

    async def wait_background(self) -> None:
        """Wait for detached resolution and prefetch jobs (used by tests and shutdown)."""
        await self._jobs.wait()
        await self.resolver.wait_pending()

    # Cache control

    def invalidate_caches(self) -> None:
        self.plates.invalidate()
        self.thumbnails.invalidate_all()
        self.resolver.forget_all()
        logger.info("NanoDLP caches invalidated")

    async def aclose(self) -> None:
        await self._jobs.cancel_all()
        await self.resolver.shutdown()
        await self.http.aclose()
