"""Print, motion and cure commands for the NanoDLP controller."""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import httpx

from nanodlp_bridge.core.exceptions import DeviceUnavailableError
from nanodlp_bridge.models import ManualResult

if TYPE_CHECKING:
    from nanodlp_bridge.services.nanodlp_client import NanoDlpClient

logger = logging.getLogger(__name__)


def mm_to_microns(value_mm: float) -> int:
    """Round to the nearest micron, halves away from zero."""
    microns = value_mm * 1000.0
    return int(math.copysign(math.floor(abs(microns) + 0.5), microns))


def manual_result(response: httpx.Response) -> ManualResult:
    try:
        payload = response.json()
    except ValueError:
        # Plain text or empty bodies still mean the command was accepted.
        return ManualResult(ok=True)
    return ManualResult.from_payload(payload)


class ControlCommandService:
    """Translate control requests into NanoDLP endpoint calls."""

    def __init__(self, client: "NanoDlpClient") -> None:
        self._client = client

    async def start_print(self, file_path: str) -> None:
        plate_id = None
        try:
            record = await self._client.resolver.find_by_path(file_path)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Plate lookup for %s failed, using it as an id: %s", file_path, exc)
            record = None
        if record is not None and record.plate_id is not None:
            plate_id = record.plate_id
        target = str(plate_id) if plate_id is not None else file_path.strip("/")
        await self._client.command("start_print", f"/printer/start/{target}")
        self._client.state_handler.reset()
        self._client.schedule_plate_prefetch(plate_id=plate_id, file_path=file_path)

    async def cancel_print(self) -> None:
        await self._client.command("cancel_print", "/printer/stop")

    async def pause_print(self) -> None:
        await self._client.command("pause_print", "/printer/pause")

    async def resume_print(self) -> None:
        await self._client.command("resume_print", "/printer/unpause")

    async def emergency_stop(self) -> ManualResult:
        # The controller often reports an error even though the stop took effect.
        response = await self._client.command(
            "emergency_stop",
            "/printer/force-stop",
            accept_any_status=True,
        )
        if response.status_code != 200:
            logger.warning("NanoDLP force-stop answered %s; treating as stopped", response.status_code)
        return ManualResult(ok=True)

    async def move(self, height: float) -> ManualResult:
        """Move to an absolute height in mm, measured against a fresh status read."""
        try:
            status = await self._client.get_status()
        except DeviceUnavailableError as exc:
            logger.warning("Cannot compute move without current Z: %s", exc.detail)
            raise DeviceUnavailableError(f"Failed to read NanoDLP status: {exc.detail}") from exc
        physical = status.get("physical_state") or {}
        current_z = physical.get("z")
        current_z = float(current_z) if isinstance(current_z, (int, float)) else 0.0
        delta = mm_to_microns(height - current_z)
        logger.debug("Absolute move to %.3fmm from %.3fmm (%d microns)", height, current_z, delta)
        return await self._relative_move(delta)

    async def move_delta(self, delta_mm: float) -> ManualResult:
        return await self._relative_move(mm_to_microns(delta_mm))

    async def _relative_move(self, microns: int) -> ManualResult:
        if microns == 0:
            return ManualResult(ok=True, message="no-op")
        direction = "up" if microns > 0 else "down"
        response = await self._client.command("move", f"/z-axis/move/{direction}/micron/{abs(microns)}")
        return manual_result(response)

    async def move_to_top(self) -> ManualResult:
        return manual_result(await self._client.command("move_to_top", "/z-axis/top"))

    async def move_to_floor(self) -> ManualResult:
        return manual_result(await self._client.command("move_to_floor", "/z-axis/bottom"))

    async def manual_home(self) -> ManualResult:
        return manual_result(await self._client.command("manual_home", "/z-axis/calibrate"))

    async def manual_cure(self, cure: bool) -> ManualResult:
        path = "/projector/on" if cure else "/projector/blank"
        return manual_result(await self._client.command("manual_cure", path))

    async def manual_command(self, gcode: str) -> ManualResult:
        response = await self._client.command("manual_command", "/gcode", method="POST", data={"gcode": gcode})
        return manual_result(response)

    async def can_move_to_top(self) -> bool:
        """True when /status exposes a Z position the axis commands can act on."""
        try:
            payload = await self._client.poller.fetch_payload()
        except DeviceUnavailableError:
            return False
        return "CurrentHeight" in payload or "physical_state" in payload

    async def can_move_to_floor(self) -> bool:
        return await self.can_move_to_top()
