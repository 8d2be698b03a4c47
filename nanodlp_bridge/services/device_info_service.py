"""Best-effort auxiliary reads: notifications, analytics and device info."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from nanodlp_bridge.models import ANALYTIC_KEYS, notification_type
from nanodlp_bridge.models.parsing import first_present, parse_int
from nanodlp_bridge.services.status_poller import StatusPoller

logger = logging.getLogger(__name__)


class DeviceInfoService:
    """Uncached passthroughs; decode problems yield empty results."""

    def __init__(self, http: httpx.AsyncClient, poller: StatusPoller) -> None:
        self._http = http
        self._poller = poller

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._http.get(path)
        except httpx.HTTPError as exc:
            logger.debug("GET %s failed: %s", path, exc)
            return None
        if response.status_code != 200:
            logger.debug("GET %s returned HTTP %s", path, response.status_code)
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug("GET %s returned an undecodable body", path)
            return None

    async def get_notifications(self) -> List[Dict[str, Any]]:
        payload = await self._get_json("/notification")
        if not isinstance(payload, list):
            return []
        notifications = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            kind = notification_type(first_present(entry, ("Type", "type")))
            enriched = dict(entry)
            enriched.setdefault("priority", kind.priority)
            enriched.setdefault("title", kind.title)
            enriched.setdefault("actions", list(kind.actions))
            notifications.append(enriched)
        notifications.sort(key=lambda item: item["priority"])
        return notifications

    async def get_analytics(self, n: int) -> List[Dict[str, Any]]:
        payload = await self._get_json(f"/analytic/data/{n}")
        if not isinstance(payload, list):
            return []
        entries = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            metric_id = parse_int(entry.get("T"))
            if metric_id is None:
                continue
            entries.append({**entry, "key": ANALYTIC_KEYS.get(metric_id, str(metric_id))})
        return entries

    async def get_analytic_value(self, metric_id: int) -> Optional[Any]:
        payload = await self._get_json(f"/analytic/value/{metric_id}")
        if isinstance(payload, (int, float, str)) and not isinstance(payload, bool):
            return payload
        return None

    async def get_config(self) -> Dict[str, Any]:
        """Config-shaped view built from /status; NanoDLP has no config endpoint."""
        payload = await self._poller.fetch_payload()
        return {
            "general": {
                "hostname": first_present(payload, ("Hostname", "hostname")) or "",
                "ip": first_present(payload, ("IP", "ip")) or "",
                "status": first_present(payload, ("Status", "status")) or "",
            },
            "advanced": {
                "backend": "nanodlp",
                "nanodlp": {
                    "build": first_present(payload, ("Build", "build")),
                    "version": first_present(payload, ("Version", "version")),
                },
            },
            "machine": {
                "disk": first_present(payload, ("disk", "Disk")),
                "wifi": first_present(payload, ("Wifi", "wifi")),
                "resin_level": first_present(payload, ("resin", "ResinLevelMm", "resin_level_mm")),
            },
            "vendor": {},
        }
