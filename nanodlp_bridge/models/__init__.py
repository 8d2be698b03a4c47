"""Domain models shared by services and API schemas."""
from nanodlp_bridge.models.domain import (
    ANALYTIC_KEYS,
    PLATE_ID_KEYS,
    CanonicalStatus,
    ManualResult,
    NotificationType,
    PlateRecord,
    StatusSnapshot,
    notification_type,
)

__all__ = [
    "ANALYTIC_KEYS",
    "PLATE_ID_KEYS",
    "CanonicalStatus",
    "ManualResult",
    "NotificationType",
    "PlateRecord",
    "StatusSnapshot",
    "notification_type",
]
