"""Live printer status endpoint."""
from fastapi import APIRouter, Depends

from nanodlp_bridge.api.dependencies import get_nanodlp_client
from nanodlp_bridge.schemas import StatusResponse
from nanodlp_bridge.services.nanodlp_client import NanoDlpClient

router = APIRouter()


@router.get("/status", response_model=StatusResponse, summary="Poll the printer status")
async def read_status(client: NanoDlpClient = Depends(get_nanodlp_client)) -> dict:
    return await client.get_status()
