"""Request and response schemas for control endpoints."""
from pydantic import BaseModel, Field


class SimpleMessage(BaseModel):
    success: bool
    message: str


class ManualResultResponse(BaseModel):
    ok: bool
    message: str | None = None


class StartPrintRequest(BaseModel):
    path: str = Field(..., min_length=1, description="Plate path, name or numeric PlateID")


class MoveRequest(BaseModel):
    height: float = Field(..., description="Absolute Z target in millimetres")


class MoveDeltaRequest(BaseModel):
    delta_mm: float = Field(..., description="Relative Z move; positive is up")


class CureRequest(BaseModel):
    cure: bool


class GcodeRequest(BaseModel):
    command: str = Field(..., min_length=1)


class CapabilityResponse(BaseModel):
    can_move_to_top: bool
    can_move_to_floor: bool
