"""Maps the PlateID reported by /status onto plate list metadata."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from nanodlp_bridge.core.request_context import request_context
from nanodlp_bridge.core.tasks import BackgroundJobs
from nanodlp_bridge.models import PlateRecord
from nanodlp_bridge.services.plate_cache import PlateListCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPlate:
    plate_id: int
    record: PlateRecord
    timestamp: float


def _same(lhs: Optional[str], rhs: str) -> bool:
    if lhs is None:
        return False
    return lhs.strip().lower() == rhs.strip().lower()


class PlateResolver:
    """Remembers the last resolved plate and refreshes it off the poll path.

    :meth:`resolve` never awaits: a miss while printing schedules a detached
    lookup and the caller simply gets ``None`` until it lands.
    """

    def __init__(
        self,
        plates: PlateListCache,
        *,
        ttl: float = 120.0,
        startup_grace: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._plates = plates
        self._ttl = ttl
        self._startup_grace = startup_grace
        self._clock = clock
        self._created_at = clock()
        self._last: Optional[ResolvedPlate] = None
        self._pending: Dict[int, asyncio.Task] = {}
        self._jobs = BackgroundJobs(name="plate-resolver", logger=logger)

    @property
    def last_resolved(self) -> Optional[ResolvedPlate]:
        return self._last

    def resolve(self, plate_id: Optional[int], *, printing: bool) -> Optional[PlateRecord]:
        if plate_id is None:
            return None
        now = self._clock()
        last = self._last
        if last is not None and last.plate_id == plate_id and now - last.timestamp < self._ttl:
            return last.record
        if not printing:
            return None
        if now - self._created_at < self._startup_grace:
            logger.debug("Skipping PlateID %s resolution during startup grace", plate_id)
            return None
        if plate_id in self._pending:
            return None

        task = self._jobs.spawn(self._resolve_in_background(plate_id), name=f"resolve-{plate_id}")
        self._pending[plate_id] = task
        task.add_done_callback(lambda finished: self._forget(plate_id, finished))
        return None

    def _forget(self, plate_id: int, task: asyncio.Task) -> None:
        if self._pending.get(plate_id) is task:
            del self._pending[plate_id]

    async def _resolve_in_background(self, plate_id: int) -> None:
        with request_context(f"bg:resolve-plate-{plate_id}"):
            try:
                plates = await self._plates.get()
                for record in plates:
                    if record.plate_id == plate_id:
                        self.remember(record)
                        logger.debug("Resolved PlateID %s -> %s", plate_id, record.name)
                        return
                logger.debug("PlateID %s not present in %d listed plates", plate_id, len(plates))
            except Exception as exc:  # noqa: BLE001
                logger.debug("Background resolution of PlateID %s failed: %s", plate_id, exc)

    def remember(self, record: PlateRecord) -> None:
        if record.plate_id is None:
            return
        self._last = ResolvedPlate(plate_id=record.plate_id, record=record, timestamp=self._clock())

    def forget_all(self) -> None:
        self._last = None

    async def find_by_path(self, file_path: str) -> Optional[PlateRecord]:
        """Case-insensitive lookup by path or name; a leading slash is optional."""
        plates = await self._plates.get()
        normalized = file_path.lstrip("/")
        for record in plates:
            resolved = record.resolved_path
            if (
                _same(resolved, file_path)
                or _same(resolved, normalized)
                or _same("/" + resolved, file_path)
                or _same(record.name, file_path)
                or _same(record.name, normalized)
            ):
                return record
        return None

    async def wait_pending(self) -> None:
        await self._jobs.wait()

    async def shutdown(self) -> None:
        await self._jobs.cancel_all()
        self._pending.clear()
