"""Schemas for plate listing and metadata endpoints."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FileListResponse(BaseModel):
    files: list[dict[str, Any]] = Field(default_factory=list)
    dirs: list[dict[str, Any]] = Field(default_factory=list)
    page_index: int = 0
    page_size: int = 100


class FileMetadataResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    file_data: dict[str, Any]
