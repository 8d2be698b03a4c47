"""Two-TTL cache for plate preview images."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from nanodlp_bridge.models import PlateRecord
from nanodlp_bridge.services.plate_resolver import PlateResolver
from nanodlp_bridge.services.utils.single_flight import SingleFlightCache
from nanodlp_bridge.services.utils.thumbnails import generate_placeholder, thumbnail_dimensions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thumbnail:
    data: bytes
    placeholder: bool = False


def missing_key(file_path: str, width: int, height: int) -> str:
    return f"missing:{file_path.lstrip('/').lower()}|{width}|{height}"


def plate_key(record: PlateRecord, fallback: str, width: int, height: int) -> str:
    """Key derived from the plate's stable identity, not the requested spelling."""
    identity = (record.resolved_path or fallback).lower()
    return f"path:{identity}|lm:{record.last_modified or 0}|{width}|{height}"


class ThumbnailCache:
    def __init__(
        self,
        client: httpx.AsyncClient,
        resolver: PlateResolver,
        *,
        ttl: float = 30.0,
        placeholder_ttl: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._resolver = resolver
        self._cache: SingleFlightCache[str, Thumbnail] = SingleFlightCache(
            "thumbnails",
            ttl=ttl,
            placeholder_ttl=placeholder_ttl,
            is_placeholder=lambda thumb: thumb.placeholder,
            clock=clock,
        )

    async def get_thumbnail(self, file_path: str, size: str = "Small") -> bytes:
        return (await self.fetch(file_path, size)).data

    async def fetch(self, file_path: str, size: str = "Small") -> Thumbnail:
        """Never raises; anything short of a real preview becomes a placeholder."""
        width, height = thumbnail_dimensions(size)
        missing = missing_key(file_path, width, height)
        cached = self._cache.peek(missing)
        if cached is not None:
            return cached

        try:
            record = await self._resolver.find_by_path(file_path)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Plate lookup for thumbnail %s failed: %s", file_path, exc)
            record = None
        if record is None:
            logger.debug("No plate matches %s; serving placeholder", file_path)
            return self._store_placeholder(missing, width, height)

        key = plate_key(record, file_path.lstrip("/").lower(), width, height)
        cached = self._cache.peek(key)
        if cached is not None:
            return cached

        if record.plate_id is None or not record.preview_available:
            logger.debug(
                "Plate %s has no preview (plate_id=%s, preview=%s)",
                record.resolved_path,
                record.plate_id,
                record.preview_available,
            )
            return self._store_placeholder(key, width, height)

        plate_id = record.plate_id
        return await self._cache.get(key, lambda: self._download(plate_id, width, height))

    def _store_placeholder(self, key: str, width: int, height: int) -> Thumbnail:
        thumb = Thumbnail(generate_placeholder(width, height), placeholder=True)
        self._cache.store(key, thumb)
        return thumb

    async def _download(self, plate_id: int, width: int, height: int) -> Thumbnail:
        try:
            response = await self._client.get(f"/static/plates/{plate_id}/3d.png")
        except httpx.HTTPError as exc:
            logger.warning("Preview request for plate %s failed: %s", plate_id, exc)
            return Thumbnail(generate_placeholder(width, height), placeholder=True)
        if response.status_code == 200 and response.content:
            return Thumbnail(response.content)
        logger.debug("Preview for plate %s returned HTTP %s", plate_id, response.status_code)
        return Thumbnail(generate_placeholder(width, height), placeholder=True)

    def invalidate_all(self) -> None:
        self._cache.invalidate_all()
