"""Canonical print state derived from NanoDLP's numeric State codes.

Observed codes: 0 idle, 1 starting or ending a job, 2 pause requested,
3 paused, 4 cancel requested, 5 printing. A cancel request is latched
until a new job starts (0 -> 1) so the UI can tell a cancelled job from a
finished one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from nanodlp_bridge.models import CanonicalStatus, StatusSnapshot

logger = logging.getLogger(__name__)

STATE_IDLE = 0
STATE_STARTING = 1
STATE_PAUSE_REQUEST = 2
STATE_PAUSED = 3
STATE_CANCEL_REQUEST = 4
STATE_PRINTING = 5


@dataclass(frozen=True)
class CanonicalState:
    status: CanonicalStatus
    paused: bool = False
    cancel_latched: bool = False
    pause_latched: bool = False
    finished: bool = False


def _infer_code(snapshot: StatusSnapshot) -> int:
    text = snapshot.state.lower()
    if text == "printing" or snapshot.printing:
        return STATE_PRINTING
    if text == "paused" or snapshot.paused:
        return STATE_PAUSED
    if text == "idle":
        return STATE_IDLE
    return -1


class NanoDlpStateHandler:
    def __init__(self) -> None:
        self._cancel_latched = False
        self._prev_code = -1
        self._reported: Optional[tuple[int, CanonicalState]] = None

    @property
    def cancel_latched(self) -> bool:
        return self._cancel_latched

    def reset(self) -> None:
        self._cancel_latched = False

    def canonicalize(self, snapshot: StatusSnapshot) -> CanonicalState:
        code = snapshot.state_code if snapshot.state_code is not None else _infer_code(snapshot)

        if code == STATE_CANCEL_REQUEST:
            self._cancel_latched = True
        if self._prev_code == STATE_IDLE and code == STATE_STARTING:
            self._cancel_latched = False
        self._prev_code = code

        if self._cancel_latched:
            status = CanonicalStatus.IDLE if code == STATE_IDLE else CanonicalStatus.CANCELING
            result = CanonicalState(status=status, cancel_latched=True)
        elif code == STATE_PAUSED:
            result = CanonicalState(status=CanonicalStatus.PAUSED, paused=True)
        elif code in (STATE_STARTING, STATE_PRINTING):
            result = CanonicalState(status=CanonicalStatus.PRINTING)
        elif code == STATE_PAUSE_REQUEST:
            result = CanonicalState(status=CanonicalStatus.PAUSING, pause_latched=True)
        elif snapshot.paused:
            result = CanonicalState(status=CanonicalStatus.PAUSED, paused=True)
        elif snapshot.printing:
            result = CanonicalState(status=CanonicalStatus.PRINTING)
        else:
            finished = (
                snapshot.layer_id is not None
                or snapshot.layers_count is not None
                or snapshot.file is not None
            )
            result = CanonicalState(status=CanonicalStatus.IDLE, finished=finished)

        self._report_if_changed(code, result)
        return result

    def _report_if_changed(self, code: int, result: CanonicalState) -> None:
        if self._reported == (code, result):
            return
        prev_code = "unknown" if self._reported is None else str(self._reported[0])
        prev_status = "unknown" if self._reported is None else self._reported[1].status.value
        logger.info(
            "state %s -> %s | status %s -> %s | cancel_latched: %s | pause_latched: %s | finished: %s",
            prev_code,
            code if code >= 0 else "unknown",
            prev_status,
            result.status.value,
            result.cancel_latched,
            result.pause_latched,
            result.finished,
        )
        self._reported = (code, result)
