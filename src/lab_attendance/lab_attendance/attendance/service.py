from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..audit.service import AuditService
from ..common.datetime_utils import month_range, now_local
from ..common.validators import require_non_empty, require_non_negative
from ..core.enums import AttendanceSource, AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..members.repository import MemberRepository
from .model import AttendanceChange, AttendanceRecord, MonthlyStatistics, UpsertOutcome
from .paid_days import paid_day_weight
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Queries over attendance records plus the audited, non-biometric write paths."""

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

    def _require_member(self, member_id: int) -> None:
        if not self._members.get_by_id(int(member_id)):
            raise NotFoundError(f"Lab member {member_id} not found")

    def get_attendance_for_member(
        self,
        member_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        if start_date and end_date and end_date < start_date:
            raise ValidationError("End date must not be before start date")
        records = self._attendance.list_for_member(int(member_id), start_date=start_date, end_date=end_date)
        return sorted(records, key=lambda r: r.work_date, reverse=True)

    def get_for_member_on_date(self, member_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_member_and_date(int(member_id), work_date)

    def get_monthly_statistics(self, member_id: int, year: int, month: int) -> MonthlyStatistics:
        start, end = month_range(year, month)
        records = self._attendance.list_for_member(int(member_id), start_date=start, end_date=end)

        def count(status: AttendanceStatus) -> int:
            return sum(1 for r in records if r.status == status)

        return MonthlyStatistics(
            total_days=len(records),
            full_days=count(AttendanceStatus.FULL_DAY),
            half_days=count(AttendanceStatus.HALF_DAY),
            lop_days=count(AttendanceStatus.LOP),
            casual_leave_full=count(AttendanceStatus.CASUAL_LEAVE_FULL),
            casual_leave_half=count(AttendanceStatus.CASUAL_LEAVE_HALF),
            holidays=count(AttendanceStatus.HOLIDAY),
            pending_exceptions=count(AttendanceStatus.PENDING_EXCEPTION),
            total_paid_days=sum(paid_day_weight(r.status) for r in records),
            total_hours_worked=round(sum(r.hours_worked or 0.0 for r in records), 2),
        )

    def manual_correction(
        self,
        *,
        member_id: int,
        work_date: date,
        status: AttendanceStatus,
        hours_worked: Optional[float],
        reason: str,
        actor: str,
    ) -> AttendanceRecord:
        """Admin override of one day. Requires a reason; rejected once frozen."""
        reason = require_non_empty(reason, "Reason")
        actor = require_non_empty(actor, "Actor")
        if hours_worked is not None:
            hours_worked = require_non_negative(hours_worked, "Hours worked")
        status = AttendanceStatus(status)
        self._require_member(member_id)

        outcome = self._attendance.upsert_record(
            member_id=int(member_id),
            work_date=work_date,
            change=AttendanceChange(
                status=status,
                source=AttendanceSource.MANUAL,
                hours_worked=hours_worked,
                manual_reason=reason,
            ),
        )
        self._audit_write(outcome, actor)
        logger.info("Manual attendance correction: member %s on %s by %s", member_id, work_date.isoformat(), actor)
        return outcome.record

    def apply_leave_override(self, *, member_id: int, work_date: date, half_day: bool, actor: str) -> AttendanceRecord:
        """Entry point for the leave workflow once a request is approved."""
        actor = require_non_empty(actor, "Actor")
        self._require_member(member_id)

        status = AttendanceStatus.CASUAL_LEAVE_HALF if half_day else AttendanceStatus.CASUAL_LEAVE_FULL
        outcome = self._attendance.upsert_record(
            member_id=int(member_id),
            work_date=work_date,
            change=AttendanceChange(status=status, source=AttendanceSource.LEAVE_OVERRIDE),
        )
        self._audit_write(outcome, actor)
        logger.info("Leave override applied: member %s on %s (%s)", member_id, work_date.isoformat(), status.value)
        return outcome.record

    def _audit_write(self, outcome: UpsertOutcome, actor: str) -> None:
        self._audit.record(
            actor=actor,
            action_type="UPDATED" if outcome.previous else "CREATED",
            entity_type="AttendanceRecord",
            entity_id=outcome.record.record_id,
            before=outcome.previous,
            after=outcome.record,
        )
