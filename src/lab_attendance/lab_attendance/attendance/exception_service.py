from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Sequence

from ..audit.service import AuditService
from ..common.datetime_utils import month_range, now_local
from ..common.validators import require_non_empty
from ..core.enums import ExceptionStatus
from ..core.exceptions import AttendanceFrozenError, InvalidStateError, NotFoundError
from .model import AttendanceException
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class ExceptionResolver:
    """Tracks attendance exceptions and records the admin sign-off on them.

    Resolving is a sign-off only: the attendance record keeps its status and
    hours. Changing a classification goes through a manual correction.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        audit: AuditService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._audit = audit
        self._clock = clock

    def list_pending(self) -> Sequence[AttendanceException]:
        return self._attendance.list_exceptions(status=ExceptionStatus.PENDING)

    def list_for_member(self, member_id: int) -> Sequence[AttendanceException]:
        return self._attendance.list_exceptions(member_id=int(member_id))

    def count_pending_for_month(self, member_id: int, year: int, month: int) -> int:
        start, end = month_range(year, month)
        return self._attendance.count_pending_exceptions(int(member_id), start, end)

    def resolve(self, exception_id: int, note: str, actor: str) -> AttendanceException:
        note = require_non_empty(note, "Resolution note")
        actor = require_non_empty(actor, "Actor")

        before = self._attendance.get_exception(int(exception_id))
        if not before:
            raise NotFoundError("Exception not found")
        if before.status == ExceptionStatus.RESOLVED:
            raise InvalidStateError("Exception already resolved")

        record = self._attendance.get_for_member_and_date(before.member_id, before.work_date)
        if record and record.is_frozen:
            raise AttendanceFrozenError("Cannot resolve exception for frozen attendance")

        updated = self._attendance.resolve_exception(
            exception_id=int(exception_id),
            resolution_note=note,
            resolved_by=actor,
            resolved_at=self._clock(),
        )
        if updated is None:
            # Lost a race with another resolver or a freeze.
            raise InvalidStateError("Exception is no longer pending or its attendance was frozen")

        self._audit.record(
            actor=actor,
            action_type="RESOLVED",
            entity_type="AttendanceException",
            entity_id=updated.exception_id,
            before=before,
            after=updated,
        )
        logger.info("Exception resolved: %s by %s", updated.exception_id, actor)
        return updated
