from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..audit.service import AuditService
from ..common.batch import BatchResult
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_RECENT_LOGS_LIMIT
from ..core.enums import BiometricEventType
from ..core.exceptions import DomainError, ValidationError
from .model import BiometricEvent, BiometricStatistics
from .repository import BiometricEventRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewBiometricEvent:
    device_id: str
    biometric_user_id: str
    device_timestamp: datetime
    event_type: str
    raw_payload: dict[str, Any] = field(default_factory=dict)


class BiometricService:
    """Event store: the only writer of biometric swipe events."""

    def __init__(
        self,
        events: BiometricEventRepository,
        audit: AuditService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._events = events
        self._audit = audit
        self._clock = clock

    @staticmethod
    def _parse_event_type(value: Any) -> BiometricEventType:
        if isinstance(value, BiometricEventType):
            return value
        try:
            return BiometricEventType(str(value or "").strip().upper())
        except ValueError:
            allowed = ", ".join(t.value for t in BiometricEventType)
            raise ValidationError(f"Invalid event type {value!r}. Must be one of: {allowed}")

    def ingest_event(
        self,
        *,
        device_id: str,
        biometric_user_id: str,
        device_timestamp: datetime,
        event_type: Any,
        raw_payload: Optional[dict[str, Any]] = None,
        actor: Optional[str] = None,
    ) -> BiometricEvent:
        kind = self._parse_event_type(event_type)
        device_id = require_non_empty(device_id, "Device id")
        subject = require_non_empty(str(biometric_user_id or ""), "Biometric user id")
        if not isinstance(device_timestamp, datetime):
            raise ValidationError("Device timestamp must be a datetime")
        if device_timestamp.tzinfo is not None:
            raise ValidationError("Device timestamp must be local time without a timezone offset")

        event = self._events.append(
            device_id=device_id,
            biometric_user_id=subject,
            device_timestamp=device_timestamp,
            server_received_at=self._clock(),
            event_type=kind,
            raw_payload=raw_payload,
        )

        self._audit.record(
            actor=actor,
            action_type="CREATED",
            entity_type="BiometricLog",
            entity_id=event.event_id,
            after=event,
        )
        logger.info("Biometric log ingested: %s - %s at %s", subject, kind.value, device_timestamp.isoformat())
        return event

    def bulk_ingest(self, items: Iterable[NewBiometricEvent], *, actor: Optional[str] = None) -> BatchResult:
        result = BatchResult()
        for index, item in enumerate(items):
            try:
                event = self.ingest_event(
                    device_id=item.device_id,
                    biometric_user_id=item.biometric_user_id,
                    device_timestamp=item.device_timestamp,
                    event_type=item.event_type,
                    raw_payload=item.raw_payload,
                    actor=actor,
                )
                result.add_success(index, event)
            except DomainError as e:
                logger.error("Failed to ingest biometric log #%s: %s", index, e)
                result.add_error(index, str(e))
            except Exception as e:
                logger.exception("Unexpected error ingesting biometric log #%s", index)
                result.add_error(index, str(e))

        logger.info("Bulk ingest completed: %s success, %s failures", result.success, result.failures)
        return result

    def get_logs_for_subject_on_date(self, biometric_user_id: str, day: date) -> Sequence[BiometricEvent]:
        return self._events.get_logs_for_subject_on_date(str(biometric_user_id), day)

    def get_logs_in_range(self, biometric_user_id: str, start: datetime, end: datetime) -> Sequence[BiometricEvent]:
        if end < start:
            raise ValidationError("End must not be before start")
        return self._events.get_logs_in_range(start=start, end=end, biometric_user_id=str(biometric_user_id))

    def get_recent(self, limit: int = DEFAULT_RECENT_LOGS_LIMIT) -> Sequence[BiometricEvent]:
        if int(limit) <= 0:
            raise ValidationError("Limit must be positive")
        return self._events.get_recent(int(limit))

    def get_statistics(self, start: datetime, end: datetime) -> BiometricStatistics:
        if end < start:
            raise ValidationError("End must not be before start")
        logs = self._events.get_logs_in_range(start=start, end=end)
        return BiometricStatistics(
            total_logs=len(logs),
            unique_devices=len({e.device_id for e in logs}),
            unique_subjects=len({e.biometric_user_id for e in logs}),
            event_type_breakdown=dict(Counter(e.event_type.value for e in logs)),
        )
