"""Per-task correlation ids stamped onto log records."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return _request_id.get()


@contextmanager
def request_context(request_id: str) -> Iterator[None]:
    """Bind ``request_id`` for the enclosed block (HTTP request or background job)."""
    token = _request_id.set(request_id)
    try:
        yield
    finally:
        _request_id.reset(token)
