"""Pydantic schemas exposed by the HTTP API."""
from nanodlp_bridge.schemas.control import (
    CapabilityResponse,
    CureRequest,
    GcodeRequest,
    ManualResultResponse,
    MoveDeltaRequest,
    MoveRequest,
    SimpleMessage,
    StartPrintRequest,
)
from nanodlp_bridge.schemas.files import FileListResponse, FileMetadataResponse
from nanodlp_bridge.schemas.status import StatusResponse

__all__ = [
    "CapabilityResponse",
    "CureRequest",
    "FileListResponse",
    "FileMetadataResponse",
    "GcodeRequest",
    "ManualResultResponse",
    "MoveDeltaRequest",
    "MoveRequest",
    "SimpleMessage",
    "StartPrintRequest",
    "StatusResponse",
]
