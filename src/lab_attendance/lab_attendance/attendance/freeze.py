from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..audit.service import AuditService
from ..common.batch import BatchResult
from ..common.datetime_utils import month_range, now_local
from ..common.validators import require_non_empty
from ..core.exceptions import DomainError, InvalidStateError, NotFoundError
from ..members.repository import MemberRepository
from .model import AttendanceFreeze
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class FreezeController:
    """One-way OPEN -> FROZEN transition of a member-month.

    There is intentionally no unfreeze.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        audit: AuditService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._members = members
        self._audit = audit
        self._clock = clock

    def is_month_frozen(self, member_id: int, year: int, month: int) -> bool:
        return self._attendance.get_freeze(int(member_id), int(year), int(month)) is not None

    def freeze(self, member_id: int, year: int, month: int, actor: str) -> AttendanceFreeze:
        actor = require_non_empty(actor, "Actor")
        start, end = month_range(year, month)
        if not self._members.get_by_id(int(member_id)):
            raise NotFoundError(f"Lab member {member_id} not found")

        pending = self._attendance.count_pending_exceptions(int(member_id), start, end)
        if pending > 0:
            raise InvalidStateError(
                f"Cannot freeze attendance: {pending} pending exception(s) must be resolved first"
            )

        if self.is_month_frozen(member_id, year, month):
            raise InvalidStateError("Attendance already frozen for this month")

        freeze = self._attendance.freeze_month(
            member_id=int(member_id),
            year=int(year),
            month=int(month),
            frozen_by=actor,
            frozen_at=self._clock(),
        )

        self._audit.record(
            actor=actor,
            action_type="FROZEN",
            entity_type="AttendanceFreeze",
            entity_id=freeze.freeze_id,
            after=freeze,
        )
        logger.info("Attendance frozen: member %s for %04d-%02d by %s", member_id, int(year), int(month), actor)
        return freeze

    def freeze_all(self, year: int, month: int, actor: str) -> BatchResult:
        month_range(year, month)
        batch = BatchResult()

        for member in self._members.list_active():
            try:
                freeze = self.freeze(member.member_id, year, month, actor)
            except DomainError as e:
                logger.error("Failed to freeze attendance for member %s: %s", member.member_id, e)
                batch.add_error(member.member_id, str(e))
                continue
            except Exception as e:
                logger.exception("Failed to freeze attendance for member %s", member.member_id)
                batch.add_error(member.member_id, str(e))
                continue
            batch.add_success(member.member_id, freeze)

        logger.info("Bulk freeze completed: %s success, %s failures", batch.success, batch.failures)
        return batch
