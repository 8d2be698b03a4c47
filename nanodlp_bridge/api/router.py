"""Root API router that aggregates all endpoint modules."""
from fastapi import APIRouter

from nanodlp_bridge.api.routes import control, device, files, health, metrics, state_stream, status

api_router = APIRouter(prefix="/api")
api_router.include_router(status.router, tags=["status"])
api_router.include_router(state_stream.router, tags=["status"])
api_router.include_router(files.router, tags=["files"])
api_router.include_router(control.router, prefix="/control", tags=["control"])
api_router.include_router(device.router, tags=["device"])
api_router.include_router(health.router, tags=["health"])
api_router.include_router(metrics.router, tags=["metrics"])
