"""Metrics endpoint for operational visibility."""
from fastapi import APIRouter

from nanodlp_bridge.core.metrics import metrics

router = APIRouter()


@router.get("/metrics", summary="Return aggregated API, device and cache metrics")
async def read_metrics() -> dict:
    return {
        "metrics": metrics.snapshot(),
    }
