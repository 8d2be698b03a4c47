"""Plate listing, metadata and preview image endpoints."""
from fastapi import APIRouter, Depends, Path, Query, Response

from nanodlp_bridge.api.dependencies import get_nanodlp_client
from nanodlp_bridge.schemas import FileListResponse, FileMetadataResponse, SimpleMessage
from nanodlp_bridge.services.nanodlp_client import NanoDlpClient

router = APIRouter()

_IMAGE_HEADERS = {"Cache-Control": "no-cache"}


@router.get("/files", response_model=FileListResponse, summary="List plates known to the printer")
async def list_files(
    page_size: int = Query(default=100, ge=1, le=1000),
    page_index: int = Query(default=0, ge=0),
    client: NanoDlpClient = Depends(get_nanodlp_client),
) -> dict:
    return await client.list_items(page_size=page_size, page_index=page_index)


@router.get("/files/metadata", response_model=FileMetadataResponse, summary="Plate metadata by path")
async def file_metadata(
    path: str = Query(..., min_length=1),
    client: NanoDlpClient = Depends(get_nanodlp_client),
) -> dict:
    return await client.get_file_metadata(path)


@router.get(
    "/files/thumbnail",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
    summary="Plate preview image (placeholder when unavailable)",
)
async def file_thumbnail(
    path: str = Query(..., min_length=1),
    size: str = Query(default="Small"),
    client: NanoDlpClient = Depends(get_nanodlp_client),
) -> Response:
    data = await client.get_file_thumbnail(path, size)
    return Response(content=data, media_type="image/png", headers=_IMAGE_HEADERS)


@router.get(
    "/plates/{plate_id}/layers/{layer}",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
    summary="Single layer preview scaled to 800x480",
)
async def plate_layer_image(
    plate_id: int = Path(..., ge=0),
    layer: int = Path(..., ge=0),
    client: NanoDlpClient = Depends(get_nanodlp_client),
) -> Response:
    data = await client.get_plate_layer_image(plate_id, layer)
    return Response(content=data, media_type="image/png", headers=_IMAGE_HEADERS)


@router.post("/files/cache/invalidate", response_model=SimpleMessage, summary="Drop plate and thumbnail caches")
async def invalidate_file_caches(client: NanoDlpClient = Depends(get_nanodlp_client)) -> SimpleMessage:
    client.invalidate_caches()
    return SimpleMessage(success=True, message="Caches invalidated")
