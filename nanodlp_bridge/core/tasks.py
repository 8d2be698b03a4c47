"""Helpers for supervised asyncio background work."""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Coroutine, Sequence

Logger = logging.Logger


def monitor_task(task: asyncio.Task, *, name: str, logger: Logger, on_error: Callable[[BaseException], None] | None = None) -> asyncio.Task:
    """Attach a callback to log unexpected task termination."""

    def _callback(finished: asyncio.Task) -> None:
        with contextlib.suppress(asyncio.CancelledError):
            exc = finished.exception()
            if exc is None:
                return
            logger.error("Background task %s crashed: %s", name, exc, exc_info=exc)
            if on_error:
                on_error(exc)

    task.add_done_callback(_callback)
    return task


class BackgroundJobs:
    """Fire-and-forget jobs that are still owned, logged and cancellable.

    Strong references are kept until each job finishes so the event loop
    cannot garbage collect a running task.
    """

    def __init__(self, *, name: str, logger: Logger) -> None:
        self._name = name
        self._logger = logger
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, *, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"{self._name}:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return monitor_task(task, name=name, logger=self._logger)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait(self) -> None:
        """Wait until every job spawned so far (and any they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


class LifecycleManager:
    """Shared lifecycle helper for starting/stopping async services."""

    def __init__(self, *, name: str, logger: Logger) -> None:
        self._name = name
        self._logger = logger
        self._started = False
        self._tracked: list[asyncio.Task] = []

    async def start(self, steps: Sequence[Callable[[], Awaitable[None]]]) -> None:
        if self._started:
            return
        self._started = True
        for step in steps:
            await step()

    async def stop(self, steps: Sequence[Callable[[], Awaitable[None]]]) -> None:
        if not self._started:
            return
        self._started = False
        for step in steps:
            try:
                await step()
            except Exception as exc:  # noqa: BLE001
                self._logger.error("%s stop failed: %s", self._name, exc, exc_info=exc)

    def track_task(
        self,
        task: asyncio.Task,
        *,
        name: str,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._tracked.append(monitor_task(task, name=name, logger=self._logger, on_error=on_error))

    async def cancel_tracked(self) -> None:
        if not self._tracked:
            return
        for task in self._tracked:
            task.cancel()
        await asyncio.gather(*self._tracked, return_exceptions=True)
        self._tracked = []
