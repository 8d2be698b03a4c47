"""Turns a status snapshot into the canonical status map served to clients."""
from __future__ import annotations

from typing import Any, Dict, Optional

from nanodlp_bridge.models import CanonicalStatus, StatusSnapshot
from nanodlp_bridge.services.state_handler import NanoDlpStateHandler


def _print_data(snapshot: StatusSnapshot) -> Optional[Dict[str, Any]]:
    plate = snapshot.file
    if plate is not None:
        return {
            "layer_count": plate.layer_count if plate.layer_count is not None else (snapshot.layers_count or 0),
            "used_material": plate.used_material or 0.0,
            "print_time": plate.print_time or 0,
            "file_data": {
                "name": plate.name or plate.path,
                "path": plate.path or plate.name,
                "location_category": "Local",
            },
        }
    job_active = (
        snapshot.printing
        or snapshot.paused
        or snapshot.layer_id is not None
        or snapshot.layers_count is not None
    )
    if job_active:
        # Job started but metadata not resolved yet.
        return {
            "layer_count": snapshot.layers_count or 0,
            "used_material": 0.0,
            "print_time": 0,
            "file_data": None,
        }
    return None


def map_status(snapshot: StatusSnapshot, handler: NanoDlpStateHandler) -> Dict[str, Any]:
    canonical = handler.canonicalize(snapshot)

    layer = snapshot.layer_id
    if canonical.status is CanonicalStatus.IDLE:
        if canonical.cancel_latched:
            layer = None
        elif canonical.finished and layer is None:
            if snapshot.file is not None and snapshot.file.layer_count is not None:
                layer = snapshot.file.layer_count
            else:
                layer = snapshot.layers_count

    return {
        "status": canonical.status.value,
        "paused": canonical.paused,
        "layer": layer,
        "print_data": _print_data(snapshot),
        "device_status_message": snapshot.status_message,
        "physical_state": {
            "z": snapshot.z if snapshot.z is not None else 0.0,
            "curing": snapshot.curing,
        },
        "cancel_latched": canonical.cancel_latched,
        "finished": canonical.finished,
    }
