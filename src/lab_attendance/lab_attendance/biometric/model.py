from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..core.enums import BiometricEventType


@dataclass(frozen=True)
class BiometricEvent:
    """One swipe as received from a device. Never updated or deleted."""

    event_id: int
    device_id: str
    biometric_user_id: str
    device_timestamp: datetime
    server_received_at: datetime
    event_type: BiometricEventType
    raw_payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BiometricStatistics:
    total_logs: int
    unique_devices: int
    unique_subjects: int
    event_type_breakdown: dict[str, int]
