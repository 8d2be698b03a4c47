"""Background status polling with snapshot/diff fan-out over SSE."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from nanodlp_bridge.core.exceptions import AppError
from nanodlp_bridge.core.request_context import request_context
from nanodlp_bridge.core.tasks import LifecycleManager
from nanodlp_bridge.services.nanodlp_client import NanoDlpClient

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _Subscriber:
    queue: asyncio.Queue
    __hash__ = object.__hash__


class StatusStreamService:
    """Poll the controller on a fixed cadence and publish changes."""

    def __init__(self, client: NanoDlpClient, *, poll_interval: float = 2.0, queue_size: int = 50) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._queue_size = queue_size
        self._subscribers: set[_Subscriber] = set()
        self._snapshot: Optional[Dict[str, Any]] = None
        self._version = 0
        self._lock = asyncio.Lock()
        self._shutdown_event = asyncio.Event()
        self._lifecycle = LifecycleManager(name="status-stream", logger=logger)
        self.last_status: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None
        self.last_success_at: Optional[datetime] = None

    @property
    def online(self) -> bool:
        return self.last_status is not None and self.last_error is None

    def is_shutdown(self) -> bool:
        return self._shutdown_event.is_set()

    async def start(self) -> None:
        self._shutdown_event.clear()
        await self._lifecycle.start([self._spawn_loop])

    async def _spawn_loop(self) -> None:
        task = asyncio.create_task(self._run(), name="status-stream-poll")
        self._lifecycle.track_task(task, name="status-stream-poll")

    async def shutdown(self) -> None:
        self._shutdown_event.set()
        await self._lifecycle.stop([])
        await self._lifecycle.cancel_tracked()
        async with self._lock:
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        for sub in subscribers:
            self._drain_queue(sub.queue)
            with contextlib.suppress(asyncio.QueueFull):
                sub.queue.put_nowait(None)

    async def _run(self) -> None:
        with request_context("bg:status-poll"):
            while not self._shutdown_event.is_set():
                await self.poll_once()
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._shutdown_event.wait(), timeout=self._poll_interval)

    async def poll_once(self) -> Optional[Dict[str, Any]]:
        """Run one poll and publish it; failures are recorded, never raised."""
        try:
            status = await self._client.get_status()
        except AppError as exc:
            if self.last_error is None:
                logger.warning("Status poll failed: %s", exc.detail)
            else:
                logger.debug("Status poll still failing: %s", exc.detail)
            self.last_error = exc.detail
            return None
        except Exception as exc:  # noqa: BLE001
            logger.debug("Status poll failed unexpectedly: %s", exc, exc_info=exc)
            self.last_error = str(exc)
            return None
        if self.last_error is not None:
            logger.info("Status poll recovered")
        self.last_error = None
        self.last_status = status
        self.last_success_at = datetime.now(timezone.utc)
        payload = self._build_payload(status)
        if payload is not None:
            await self._broadcast(payload)
        return status

    async def subscribe(self) -> _Subscriber:
        subscriber = _Subscriber(queue=asyncio.Queue(maxsize=self._queue_size))
        async with self._lock:
            self._subscribers.add(subscriber)
        return subscriber

    async def unsubscribe(self, subscriber: _Subscriber) -> None:
        async with self._lock:
            self._subscribers.discard(subscriber)

    def build_snapshot(self) -> Optional[Dict[str, Any]]:
        if self._snapshot is None:
            return None
        return {
            "version": self._version,
            "ts": datetime.now(timezone.utc).isoformat(),
            "status": self._snapshot,
        }

    def _build_payload(self, current: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        previous = self._snapshot
        if previous is None:
            self._version += 1
            self._snapshot = current
            return {"event": "snapshot", "id": self._version, "data": self.build_snapshot()}

        changes: Dict[str, Any] = {}
        self._diff_dict(previous, current, "", changes)
        if not changes:
            return None
        self._version += 1
        self._snapshot = current
        return {
            "event": "diff",
            "id": self._version,
            "data": {
                "version": self._version,
                "ts": datetime.now(timezone.utc).isoformat(),
                "changes": changes,
            },
        }

    async def _broadcast(self, payload: Dict[str, Any]) -> None:
        if self._shutdown_event.is_set():
            return
        dead: list[_Subscriber] = []
        async with self._lock:
            for sub in self._subscribers:
                try:
                    sub.queue.put_nowait(payload)
                except asyncio.QueueFull:
                    dead.append(sub)
            for sub in dead:
                self._subscribers.discard(sub)
        for sub in dead:
            self._drain_queue(sub.queue)
            with contextlib.suppress(asyncio.QueueFull):
                sub.queue.put_nowait(None)
        if dead:
            logger.warning("Dropped %d status stream subscriber(s) due to backpressure", len(dead))

    @staticmethod
    def _drain_queue(queue: asyncio.Queue) -> None:
        with contextlib.suppress(asyncio.QueueEmpty):
            while True:
                queue.get_nowait()

    def _diff_dict(
        self,
        previous: Dict[str, Any],
        current: Dict[str, Any],
        prefix: str,
        out: Dict[str, Any],
    ) -> None:
        for key, value in current.items():
            path = f"{prefix}.{key}" if prefix else key
            if key not in previous:
                out[path] = value
                continue
            old_value = previous[key]
            if isinstance(value, dict) and isinstance(old_value, dict):
                self._diff_dict(old_value, value, path, out)
                continue
            if value != old_value:
                out[path] = value

        for key in previous:
            if key not in current:
                out[f"{prefix}.{key}" if prefix else key] = None
