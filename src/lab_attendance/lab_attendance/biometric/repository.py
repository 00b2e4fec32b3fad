from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import BiometricEventType
from .model import BiometricEvent


class BiometricEventRepository(Protocol):
    """Append-only event ledger. There is deliberately no update or delete."""

    def append(
        self,
        *,
        device_id: str,
        biometric_user_id: str,
        device_timestamp: datetime,
        server_received_at: datetime,
        event_type: BiometricEventType,
        raw_payload: Optional[dict[str, Any]] = None,
    ) -> BiometricEvent:
        raise NotImplementedError

    def get_logs_for_subject_on_date(self, biometric_user_id: str, day: date) -> Sequence[BiometricEvent]:
        """Events of one local calendar day (bounds inclusive), ascending by device timestamp."""

        raise NotImplementedError

    def get_logs_in_range(
        self,
        *,
        start: datetime,
        end: datetime,
        biometric_user_id: Optional[str] = None,
    ) -> Sequence[BiometricEvent]:
        raise NotImplementedError

    def get_recent(self, limit: int) -> Sequence[BiometricEvent]:
        raise NotImplementedError
