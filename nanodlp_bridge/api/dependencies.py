"""FastAPI dependency providers."""
from fastapi import Depends, Request

from nanodlp_bridge.services.control_command_service import ControlCommandService
from nanodlp_bridge.services.device_info_service import DeviceInfoService
from nanodlp_bridge.services.health_service import HealthService
from nanodlp_bridge.services.nanodlp_client import NanoDlpClient
from nanodlp_bridge.services.registry import ServiceRegistry
from nanodlp_bridge.services.status_stream_service import StatusStreamService


def get_service_registry(request: Request) -> ServiceRegistry:
    """Return the service registry stored on the FastAPI application state."""

    registry = request.app.state.services
    if not isinstance(registry, ServiceRegistry):
        raise RuntimeError("Service registry not initialised")
    return registry


def get_nanodlp_client(registry: ServiceRegistry = Depends(get_service_registry)) -> NanoDlpClient:
    return registry.client


def get_control_service(client: NanoDlpClient = Depends(get_nanodlp_client)) -> ControlCommandService:
    return client.commands


def get_device_info_service(client: NanoDlpClient = Depends(get_nanodlp_client)) -> DeviceInfoService:
    return client.device_info


def get_status_stream_service(
    registry: ServiceRegistry = Depends(get_service_registry),
) -> StatusStreamService:
    return registry.status_stream_service


def get_health_service(registry: ServiceRegistry = Depends(get_service_registry)) -> HealthService:
    return registry.health_service
