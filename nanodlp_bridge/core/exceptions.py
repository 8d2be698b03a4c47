"""Common exception helpers for the backend services."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base exception for application specific errors."""

    status_code = 500
    error_code = "app_error"
    default_detail = "An unexpected error occurred."

    def __init__(self, detail: str | None = None, *, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail
        self.extra = extra or {}


class DomainError(AppError):
    """Normalized domain error surfaced to API handlers."""


class BadRequestError(DomainError):
    status_code = 400
    error_code = "bad_request"
    default_detail = "Invalid request."


class NotFoundError(DomainError):
    status_code = 404
    error_code = "not_found"
    default_detail = "Resource not found."


class ServiceUnavailableError(DomainError):
    status_code = 503
    error_code = "service_unavailable"
    default_detail = "Service unavailable."


class BadGatewayError(DomainError):
    status_code = 502
    error_code = "bad_gateway"
    default_detail = "Upstream service failed."


class InternalError(DomainError):
    status_code = 500
    error_code = "internal_error"
    default_detail = "Internal server error."


class DeviceUnavailableError(ServiceUnavailableError):
    """The NanoDLP controller could not be reached or gave an unusable reply."""

    error_code = "device_unavailable"
    default_detail = "NanoDLP device unavailable."


class DeviceCommandError(BadGatewayError):
    """The controller answered a command with a non-200 status."""

    error_code = "device_command_failed"
    default_detail = "NanoDLP rejected the command."

    def __init__(self, command: str, device_status: int, body: str = "") -> None:
        self.command = command
        self.device_status = device_status
        super().__init__(
            f"NanoDLP {command} failed: {device_status}",
            extra={"command": command, "device_status": device_status, "body": body[:200]},
        )
