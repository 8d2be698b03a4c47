"""Response schemas for status endpoints."""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FileData(BaseModel):
    name: str
    path: str
    location_category: str = "Local"


class PrintData(BaseModel):
    layer_count: int = 0
    used_material: float = 0.0
    print_time: float = 0
    file_data: FileData | None = None


class PhysicalState(BaseModel):
    z: float = 0.0
    curing: bool = False


class StatusResponse(BaseModel):
    """Canonical status returned by `/api/status`."""

    model_config = ConfigDict(extra="allow")

    status: Literal["Printing", "Pausing", "Paused", "Canceling", "Idle"]
    paused: bool
    layer: int | None = None
    print_data: PrintData | None = None
    device_status_message: str | None = None
    physical_state: PhysicalState = Field(default_factory=PhysicalState)
    cancel_latched: bool = False
    finished: bool = False
