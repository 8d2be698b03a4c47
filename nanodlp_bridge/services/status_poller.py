"""Bounded-retry /status fetch plus plate splicing and mapping."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from nanodlp_bridge.core.exceptions import DeviceUnavailableError
from nanodlp_bridge.models import PLATE_ID_KEYS, StatusSnapshot
from nanodlp_bridge.models.parsing import parse_int
from nanodlp_bridge.services.plate_resolver import PlateResolver
from nanodlp_bridge.services.state_handler import NanoDlpStateHandler
from nanodlp_bridge.services.status_mapper import map_status

logger = logging.getLogger(__name__)

STATUS_PATH = "/status"


class StatusFetchError(Exception):
    """One failed /status attempt (transport, HTTP status or body)."""


def read_plate_id(payload: Dict[str, Any]) -> Optional[int]:
    for key in PLATE_ID_KEYS:
        plate_id = parse_int(payload.get(key))
        if plate_id is not None:
            return plate_id
    return None


class StatusPoller:
    def __init__(
        self,
        client: httpx.AsyncClient,
        resolver: PlateResolver,
        state_handler: NanoDlpStateHandler,
        *,
        retry_delay: float = 0.2,
    ) -> None:
        self._client = client
        self._resolver = resolver
        self._state_handler = state_handler
        self._retry_delay = retry_delay

    async def _fetch_once(self) -> Dict[str, Any]:
        try:
            response = await self._client.get(STATUS_PATH)
        except httpx.HTTPError as exc:
            raise StatusFetchError(f"request failed: {exc!r}") from exc
        if response.status_code != 200:
            raise StatusFetchError(f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise StatusFetchError(f"undecodable body: {exc}") from exc
        if not isinstance(payload, dict):
            raise StatusFetchError(f"unexpected payload type {type(payload).__name__}")
        return payload

    async def fetch_payload(self) -> Dict[str, Any]:
        """Raw /status payload; one retry, then :class:`DeviceUnavailableError`."""
        try:
            return await self._fetch_once()
        except StatusFetchError as exc:
            logger.info("Status fetch failed (%s); retrying in %.2fs", exc, self._retry_delay)
        await asyncio.sleep(self._retry_delay)
        try:
            return await self._fetch_once()
        except StatusFetchError as exc:
            raise DeviceUnavailableError(f"NanoDLP status unavailable: {exc}") from exc

    async def get_status_snapshot(self) -> StatusSnapshot:
        payload = await self.fetch_payload()
        # Per-layer geometry; large and unused.
        payload.pop("FillAreas", None)
        snapshot = StatusSnapshot.from_json(payload)
        if snapshot.file is None:
            record = self._resolver.resolve(read_plate_id(payload), printing=snapshot.printing)
            if record is not None:
                snapshot = snapshot.with_file(record)
        return snapshot

    async def get_status(self) -> Dict[str, Any]:
        return map_status(await self.get_status_snapshot(), self._state_handler)
