"""Cached access to the controller's plate list."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List

import httpx
from pydantic import ValidationError

from nanodlp_bridge.models import PlateRecord
from nanodlp_bridge.services.utils.single_flight import SingleFlightCache

logger = logging.getLogger(__name__)

PLATES_PATH = "/plates/list/json"
_LIST_KEYS = ("plates", "files", "data")
_CACHE_KEY = "plates"


class PlateListUnavailable(Exception):
    """Raised by the loader so a failed load is never cached."""


def extract_plate_entries(payload: Any) -> List[dict]:
    """Normalise the handful of list shapes NanoDLP installs return."""
    if isinstance(payload, list):
        return [entry for entry in payload if isinstance(entry, dict)]
    if isinstance(payload, dict):
        for key in _LIST_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                return [entry for entry in candidate if isinstance(entry, dict)]
        nested = [value for value in payload.values() if isinstance(value, dict)]
        if nested:
            return nested
        return [payload]
    return []


class PlateListCache:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        ttl: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._cache: SingleFlightCache[str, List[PlateRecord]] = SingleFlightCache(
            "plates", ttl=ttl, clock=clock
        )

    async def get(self, *, force_refresh: bool = False) -> List[PlateRecord]:
        """Return the plate list; an empty list when the device cannot supply one."""
        try:
            return await self._cache.get(_CACHE_KEY, self._load, force_refresh=force_refresh)
        except PlateListUnavailable as exc:
            logger.warning("Plate list unavailable: %s", exc)
            return []

    def invalidate(self) -> None:
        self._cache.invalidate_all()

    async def _load(self) -> List[PlateRecord]:
        try:
            response = await self._client.get(PLATES_PATH)
        except httpx.HTTPError as exc:
            raise PlateListUnavailable(f"request failed: {exc}") from exc
        if response.status_code != 200:
            raise PlateListUnavailable(f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise PlateListUnavailable(f"undecodable body: {exc}") from exc

        records: List[PlateRecord] = []
        for entry in extract_plate_entries(payload):
            try:
                records.append(PlateRecord.from_json(entry))
            except (ValidationError, TypeError, ValueError) as exc:
                logger.warning("Skipping unparseable plate entry: %s", exc)
        logger.debug("Loaded %d plates", len(records))
        return records
