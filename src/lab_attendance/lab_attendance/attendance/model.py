from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceSource, AttendanceStatus, ExceptionStatus, ExceptionType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the authoritative attendance of one member on one day."""

    record_id: int
    member_id: int
    work_date: date
    status: AttendanceStatus
    source: AttendanceSource
    hours_worked: Optional[float] = None
    first_in: Optional[datetime] = None
    last_out: Optional[datetime] = None
    is_frozen: bool = False
    frozen_at: Optional[datetime] = None
    manual_reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceChange:
    """Field values written by derivation, manual correction or a leave override."""

    status: AttendanceStatus
    source: AttendanceSource
    hours_worked: Optional[float] = None
    first_in: Optional[datetime] = None
    last_out: Optional[datetime] = None
    manual_reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceException:
    exception_id: int
    attendance_record_id: int
    member_id: int
    work_date: date
    exception_type: ExceptionType
    description: str
    status: ExceptionStatus = ExceptionStatus.PENDING
    resolution_note: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceFreeze:
    """Presence of this row is the freeze flag for the whole member-month."""

    freeze_id: int
    member_id: int
    year: int
    month: int
    frozen_by: str
    frozen_at: datetime


@dataclass(frozen=True)
class DerivedException:
    exception_type: ExceptionType
    description: str


@dataclass(frozen=True)
class DerivationResult:
    status: AttendanceStatus
    source: AttendanceSource
    hours_worked: Optional[float]
    first_in: Optional[datetime]
    last_out: Optional[datetime]
    exception: Optional[DerivedException] = None

    def to_change(self) -> AttendanceChange:
        return AttendanceChange(
            status=self.status,
            source=self.source,
            hours_worked=self.hours_worked,
            first_in=self.first_in,
            last_out=self.last_out,
        )


@dataclass(frozen=True)
class UpsertOutcome:
    """What an attendance upsert did.

    ``applied`` is False when the existing record's source was protected and it
    was left untouched.
    """

    record: AttendanceRecord
    previous: Optional[AttendanceRecord]
    applied: bool = True
    exception: Optional[AttendanceException] = None


@dataclass(frozen=True)
class MonthlyStatistics:
    total_days: int
    full_days: int
    half_days: int
    lop_days: int
    casual_leave_full: int
    casual_leave_half: int
    holidays: int
    pending_exceptions: int
    total_paid_days: float
    total_hours_worked: float
