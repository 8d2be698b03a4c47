"""Health check service."""
from datetime import datetime, timezone

from nanodlp_bridge.services.status_stream_service import StatusStreamService


class HealthService:
    """Encapsulates health probe logic for the API layer."""

    def __init__(self, stream: StatusStreamService, *, started_at: datetime) -> None:
        self._stream = stream
        self._started_at = started_at

    def check(self) -> dict:
        now = datetime.now(timezone.utc)
        last_success = self._stream.last_success_at
        return {
            "status": "healthy" if self._stream.online else "degraded",
            "timestamp": now.isoformat(),
            "printer_online": self._stream.online,
            "last_error": self._stream.last_error,
            "last_success_at": last_success.isoformat() if last_success else None,
            "uptime_seconds": round((now - self._started_at).total_seconds(), 1),
        }
