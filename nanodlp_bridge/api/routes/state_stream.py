"""Status snapshot + diff stream over SSE."""
from __future__ import annotations

import asyncio
import json
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from nanodlp_bridge.api.dependencies import get_status_stream_service
from nanodlp_bridge.services.status_stream_service import StatusStreamService

router = APIRouter()

PING_INTERVAL_S = 25


class SafeStreamingResponse(StreamingResponse):
    async def listen_for_disconnect(self, receive) -> None:
        try:
            await super().listen_for_disconnect(receive)
        except asyncio.CancelledError:
            return


def _sse_event(event: str, data: dict, event_id: Optional[int] = None) -> str:
    payload = json.dumps(data, separators=(",", ":"))
    parts = []
    if event_id is not None:
        parts.append(f"id: {event_id}")
    parts.append(f"event: {event}")
    parts.append(f"data: {payload}")
    return "\n".join(parts) + "\n\n"


@router.get("/status/stream", summary="Stream status snapshots and diffs")
async def stream_status(
    request: Request,
    stream_service: StatusStreamService = Depends(get_status_stream_service),
):
    subscriber = await stream_service.subscribe()
    snapshot = stream_service.build_snapshot()

    async def event_stream():
        try:
            if snapshot is not None:
                yield _sse_event("snapshot", snapshot, snapshot.get("version"))
            try:
                while True:
                    if stream_service.is_shutdown():
                        break
                    if await request.is_disconnected():
                        break
                    try:
                        item = await asyncio.wait_for(subscriber.queue.get(), timeout=PING_INTERVAL_S)
                    except asyncio.TimeoutError:
                        yield _sse_event("ping", {"ts": asyncio.get_running_loop().time()})
                        continue
                    if item is None:
                        break
                    yield _sse_event(item["event"], item["data"], item.get("id"))
            except asyncio.CancelledError:
                return
        finally:
            await stream_service.unsubscribe(subscriber)

    return SafeStreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
