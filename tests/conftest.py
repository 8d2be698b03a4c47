import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import pytest

from nanodlp_bridge.core.config import Settings
from nanodlp_bridge.core.transport import build_device_client
from nanodlp_bridge.services.nanodlp_client import NanoDlpClient

Responder = Callable[[httpx.Request], Union[httpx.Response, Exception]]


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDevice:
    """In-memory NanoDLP controller served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: Dict[str, List[Responder]] = {}
        self.calls: List[str] = []
        self.requests: List[httpx.Request] = []
        self.gates: Dict[str, asyncio.Event] = {}

    def on(self, path: str, *responders: Responder) -> None:
        """Register responders; the last one repeats once the others are used."""
        self.routes[path] = list(responders)

    def json(self, path: str, payload: Any, status: int = 200) -> None:
        self.on(path, lambda request: httpx.Response(status, json=payload))

    def text(self, path: str, body: str, status: int = 200) -> None:
        self.on(path, lambda request: httpx.Response(status, text=body))

    def content(self, path: str, body: bytes, status: int = 200) -> None:
        self.on(path, lambda request: httpx.Response(status, content=body))

    def fail(self, path: str) -> None:
        self.on(path, lambda request: httpx.ConnectError("connection refused", request=request))

    def gate(self, path: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[path] = event
        return event

    def count(self, path: str) -> int:
        return self.calls.count(path)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        self.requests.append(request)
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        responders = self.routes.get(path)
        if not responders:
            return httpx.Response(404, text="not found")
        responder = responders.pop(0) if len(responders) > 1 else responders[0]
        outcome = responder(request)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def status_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "Printing": False,
        "Paused": False,
        "State": 0,
        "Status": "Idle",
        "CurrentHeight": 0,
        "temp": "24.5°C",
        "mcu": "31.0",
        "resin": 12,
    }
    payload.update(overrides)
    return payload


def form_body(request: httpx.Request) -> str:
    return request.content.decode()


def json_body(request: httpx.Request) -> Optional[Any]:
    return json.loads(request.content) if request.content else None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        base_url="http://nanodlp.test",
        status_retry_delay=0.0,
        plate_resolve_startup_grace=2.0,
        request_timeout=2.0,
    )


@pytest.fixture
async def client(settings: Settings, device: FakeDevice, clock: FakeClock):
    nano = NanoDlpClient(settings, build_device_client(settings, transport=device.transport), clock=clock)
    try:
        yield nano
    finally:
        await nano.aclose()
