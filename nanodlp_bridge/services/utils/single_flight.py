"""TTL cache with per-key request coalescing."""
from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

from nanodlp_bridge.core.metrics import metrics

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    timestamp: float
    placeholder: bool = False


class SingleFlightCache(Generic[K, V]):
    """Caches fetch results per key and runs at most one fetch per key.

    Concurrent callers for a key share one :class:`asyncio.Task`. The task's
    result is stored by a done-callback only while the task is still the
    registered in-flight handle, so a forced refresh can never be
    overwritten by an older fetch that finishes later. Failed fetches store
    nothing.
    """

    def __init__(
        self,
        name: str,
        *,
        ttl: float,
        placeholder_ttl: Optional[float] = None,
        is_placeholder: Optional[Callable[[V], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._ttl = ttl
        self._placeholder_ttl = ttl if placeholder_ttl is None else placeholder_ttl
        self._is_placeholder = is_placeholder
        self._clock = clock
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._inflight: Dict[K, asyncio.Task] = {}

    def _fresh_entry(self, key: K, ttl: Optional[float] = None) -> Optional[CacheEntry[V]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        limit = ttl if ttl is not None else (self._placeholder_ttl if entry.placeholder else self._ttl)
        if self._clock() - entry.timestamp < limit:
            return entry
        del self._entries[key]
        return None

    def peek(self, key: K) -> Optional[V]:
        entry = self._fresh_entry(key)
        return entry.value if entry is not None else None

    def in_flight(self, key: K) -> bool:
        return key in self._inflight

    def store(self, key: K, value: V, *, placeholder: Optional[bool] = None) -> None:
        if placeholder is None:
            placeholder = bool(self._is_placeholder and self._is_placeholder(value))
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock(), placeholder=placeholder)

    def invalidate(self, key: K) -> None:
        self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        self._entries.clear()

    async def get(
        self,
        key: K,
        fetch: Callable[[], Awaitable[V]],
        *,
        force_refresh: bool = False,
        ttl: Optional[float] = None,
    ) -> V:
        """Return a fresh cached value, join an in-flight fetch, or start one."""
        if force_refresh:
            self._entries.pop(key, None)
        else:
            entry = self._fresh_entry(key, ttl)
            if entry is not None:
                metrics.incr(f"{self._name}.hit")
                return entry.value
            pending = self._inflight.get(key)
            if pending is not None:
                metrics.incr(f"{self._name}.coalesced")
                return await asyncio.shield(pending)

        metrics.incr(f"{self._name}.miss")
        task = asyncio.ensure_future(fetch())
        self._inflight[key] = task
        task.add_done_callback(functools.partial(self._settle, key))
        return await asyncio.shield(task)

    def _settle(self, key: K, task: asyncio.Task) -> None:
        if task.cancelled():
            if self._inflight.get(key) is task:
                del self._inflight[key]
            return
        exc = task.exception()
        if self._inflight.get(key) is not task:
            # Superseded by a forced refresh; the newer fetch owns the slot.
            return
        del self._inflight[key]
        if exc is None:
            self.store(key, task.result())
        else:
            logger.debug("%s fetch for %r failed: %s", self._name, key, exc)
