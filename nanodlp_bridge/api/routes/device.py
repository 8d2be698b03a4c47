"""Auxiliary device endpoints: notifications, analytics and config."""
from typing import Any

from fastapi import APIRouter, Depends, Path, Query

from nanodlp_bridge.api.dependencies import get_device_info_service
from nanodlp_bridge.services.device_info_service import DeviceInfoService

router = APIRouter()


@router.get("/notifications", summary="Active device notifications, highest priority first")
async def list_notifications(
    device_info: DeviceInfoService = Depends(get_device_info_service),
) -> list[dict[str, Any]]:
    return await device_info.get_notifications()


@router.get("/analytics", summary="Recent analytic samples")
async def list_analytics(
    n: int = Query(default=200, ge=1, le=5000),
    device_info: DeviceInfoService = Depends(get_device_info_service),
) -> list[dict[str, Any]]:
    return await device_info.get_analytics(n)


@router.get("/analytics/{metric_id}", summary="Latest value of one analytic metric")
async def read_analytic_value(
    metric_id: int = Path(..., ge=0),
    device_info: DeviceInfoService = Depends(get_device_info_service),
) -> dict[str, Any]:
    return {"id": metric_id, "value": await device_info.get_analytic_value(metric_id)}


@router.get("/device/config", summary="Device information derived from /status")
async def read_device_config(
    device_info: DeviceInfoService = Depends(get_device_info_service),
) -> dict[str, Any]:
    return await device_info.get_config()
