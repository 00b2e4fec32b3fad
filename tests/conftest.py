from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Collection, Optional

import pytest

from src.lab_attendance.lab_attendance.attendance.derivation import AttendanceDerivationEngine
from src.lab_attendance.lab_attendance.attendance.exception_service import ExceptionResolver
from src.lab_attendance.lab_attendance.attendance.freeze import FreezeController
from src.lab_attendance.lab_attendance.attendance.model import (
    AttendanceChange,
    AttendanceException,
    AttendanceFreeze,
    AttendanceRecord,
    DerivedException,
    UpsertOutcome,
)
from src.lab_attendance.lab_attendance.attendance.service import AttendanceService
from src.lab_attendance.lab_attendance.audit.model import AuditEvent
from src.lab_attendance.lab_attendance.audit.service import AuditService
from src.lab_attendance.lab_attendance.biometric.model import BiometricEvent
from src.lab_attendance.lab_attendance.biometric.service import BiometricService
from src.lab_attendance.lab_attendance.common.datetime_utils import end_of_day, month_range, start_of_day
from src.lab_attendance.lab_attendance.core.enums import (
    AttendanceSource,
    BiometricEventType,
    ExceptionStatus,
)
from src.lab_attendance.lab_attendance.core.exceptions import AttendanceFrozenError, InvalidStateError
from src.lab_attendance.lab_attendance.holidays.service import CachedHolidayCalendar
from src.lab_attendance.lab_attendance.members.model import LabMember, PaymentBand, PaymentBandAssignment
from src.lab_attendance.lab_attendance.payroll.engine import SalaryCalculationEngine
from src.lab_attendance.lab_attendance.payroll.model import MonthlySalaryCalculation, SalaryAdjustment
from src.lab_attendance.lab_attendance.payroll.service import SalaryService
from src.lab_attendance.lab_attendance.settings.service import CachedSettings

NOW = datetime(2025, 2, 1, 9, 0)


def fixed_clock() -> datetime:
    return NOW


@dataclass
class InMemoryMembers:
    members: dict[int, LabMember] = field(default_factory=dict)
    bands: dict[int, PaymentBandAssignment] = field(default_factory=dict)

    def add(self, member: LabMember, band: Optional[PaymentBand] = None) -> LabMember:
        self.members[member.member_id] = member
        if band is not None:
            self.bands[member.member_id] = PaymentBandAssignment(
                assignment_id=member.member_id,
                member_id=member.member_id,
                band=band,
                assigned_from=date(2024, 1, 1),
            )
        return member

    def get_by_id(self, member_id: int) -> Optional[LabMember]:
        return self.members.get(member_id)

    def list_active(self):
        return [m for m in sorted(self.members.values(), key=lambda m: m.member_id) if m.is_active]

    def get_current_payment_band(self, member_id: int) -> Optional[PaymentBandAssignment]:
        return self.bands.get(member_id)


class InMemoryEvents:
    def __init__(self):
        self.events: list[BiometricEvent] = []

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
        event = BiometricEvent(
            event_id=len(self.events) + 1,
            device_id=device_id,
            biometric_user_id=biometric_user_id,
            device_timestamp=device_timestamp,
            server_received_at=server_received_at,
            event_type=event_type,
            raw_payload=dict(raw_payload or {}),
        )
        self.events.append(event)
        return event

    def swipe(self, biometric_user_id: str, when: datetime, event_type: BiometricEventType) -> BiometricEvent:
        return self.append(
            device_id="DEV-1",
            biometric_user_id=biometric_user_id,
            device_timestamp=when,
            server_received_at=when,
            event_type=event_type,
        )

    def get_logs_for_subject_on_date(self, biometric_user_id: str, day: date):
        return self.get_logs_in_range(start=start_of_day(day), end=end_of_day(day), biometric_user_id=biometric_user_id)

    def get_logs_in_range(self, *, start: datetime, end: datetime, biometric_user_id: Optional[str] = None):
        items = [
            e
            for e in self.events
            if start <= e.device_timestamp <= end
            and (biometric_user_id is None or e.biometric_user_id == biometric_user_id)
        ]
        return sorted(items, key=lambda e: (e.device_timestamp, e.event_id))

    def get_recent(self, limit: int):
        items = sorted(self.events, key=lambda e: (e.server_received_at, e.event_id), reverse=True)
        return items[:limit]


@dataclass
class InMemoryHolidays:
    days: set[date] = field(default_factory=set)
    lookups: int = 0

    def exists_on(self, day: date) -> bool:
        self.lookups += 1
        return day in self.days


@dataclass
class InMemorySettings:
    values: dict[str, str] = field(default_factory=dict)
    loads: int = 0

    def load_current(self):
        self.loads += 1
        return dict(self.values)


class InMemoryAttendance:
    """Mirrors the transactional rules of the MySQL repository."""

    def __init__(self):
        self.records: dict[tuple[int, date], AttendanceRecord] = {}
        self.exceptions: dict[int, AttendanceException] = {}
        self.freezes: dict[tuple[int, int, int], AttendanceFreeze] = {}
        self._record_id = 0
        self._exception_id = 0

    def get_for_member_and_date(self, member_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self.records.get((member_id, work_date))

    def list_for_member(self, member_id, *, start_date=None, end_date=None, frozen_only=False):
        items = [
            r
            for r in self.records.values()
            if r.member_id == member_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
            and (not frozen_only or r.is_frozen)
        ]
        return sorted(items, key=lambda r: r.work_date)

    def upsert_record(
        self,
        *,
        member_id: int,
        work_date: date,
        change: AttendanceChange,
        exception: Optional[DerivedException] = None,
        keep_sources: Collection[AttendanceSource] = (),
    ) -> UpsertOutcome:
        if (member_id, work_date.year, work_date.month) in self.freezes:
            raise AttendanceFrozenError("Cannot modify frozen attendance")

        previous = self.records.get((member_id, work_date))
        if previous and previous.is_frozen:
            raise AttendanceFrozenError("Cannot modify frozen attendance")
        if previous and previous.source in keep_sources:
            return UpsertOutcome(record=previous, previous=previous, applied=False)

        if previous:
            record_id = previous.record_id
        else:
            self._record_id += 1
            record_id = self._record_id

        record = AttendanceRecord(
            record_id=record_id,
            member_id=member_id,
            work_date=work_date,
            status=change.status,
            source=change.source,
            hours_worked=change.hours_worked,
            first_in=change.first_in,
            last_out=change.last_out,
            manual_reason=change.manual_reason,
        )
        self.records[(member_id, work_date)] = record

        saved = None
        if exception is not None:
            current = self.get_exception_for_record(record_id)
            if current:
                saved = replace(current, exception_type=exception.exception_type, description=exception.description)
            else:
                self._exception_id += 1
                saved = AttendanceException(
                    exception_id=self._exception_id,
                    attendance_record_id=record_id,
                    member_id=member_id,
                    work_date=work_date,
                    exception_type=exception.exception_type,
                    description=exception.description,
                )
            self.exceptions[saved.exception_id] = saved

        return UpsertOutcome(record=record, previous=previous, applied=True, exception=saved)

    def get_exception(self, exception_id: int) -> Optional[AttendanceException]:
        return self.exceptions.get(exception_id)

    def get_exception_for_record(self, record_id: int) -> Optional[AttendanceException]:
        for e in self.exceptions.values():
            if e.attendance_record_id == record_id:
                return e
        return None

    def list_exceptions(self, *, status=None, member_id=None):
        items = [
            e
            for e in self.exceptions.values()
            if (status is None or e.status == status) and (member_id is None or e.member_id == member_id)
        ]
        return sorted(items, key=lambda e: (e.work_date, e.exception_id), reverse=True)

    def count_pending_exceptions(self, member_id: int, start_date: date, end_date: date) -> int:
        return sum(
            1
            for e in self.exceptions.values()
            if e.member_id == member_id and start_date <= e.work_date <= end_date and e.status == ExceptionStatus.PENDING
        )

    def resolve_exception(self, *, exception_id, resolution_note, resolved_by, resolved_at):
        current = self.exceptions.get(exception_id)
        if not current or current.status != ExceptionStatus.PENDING:
            return None
        record = self.records.get((current.member_id, current.work_date))
        if record and record.is_frozen:
            return None
        updated = replace(
            current,
            status=ExceptionStatus.RESOLVED,
            resolution_note=resolution_note,
            resolved_by=resolved_by,
            resolved_at=resolved_at,
        )
        self.exceptions[exception_id] = updated
        return updated

    def get_freeze(self, member_id: int, year: int, month: int) -> Optional[AttendanceFreeze]:
        return self.freezes.get((member_id, year, month))

    def freeze_month(self, *, member_id, year, month, frozen_by, frozen_at) -> AttendanceFreeze:
        if (member_id, year, month) in self.freezes:
            raise InvalidStateError("Attendance already frozen for this month")
        start, end = month_range(year, month)
        pending = self.count_pending_exceptions(member_id, start, end)
        if pending > 0:
            raise InvalidStateError(f"Cannot freeze attendance: {pending} pending exception(s) must be resolved first")

        freeze = AttendanceFreeze(
            freeze_id=len(self.freezes) + 1,
            member_id=member_id,
            year=year,
            month=month,
            frozen_by=frozen_by,
            frozen_at=frozen_at,
        )
        self.freezes[(member_id, year, month)] = freeze
        for key, record in list(self.records.items()):
            if record.member_id == member_id and start <= record.work_date <= end:
                self.records[key] = replace(record, is_frozen=True, frozen_at=frozen_at)
        return freeze


class InMemoryPayroll:
    def __init__(self):
        self.calculations: dict[int, MonthlySalaryCalculation] = {}
        self.adjustments: list[SalaryAdjustment] = []

    def get_calculation(self, member_id, year, month):
        for c in self.calculations.values():
            if (c.member_id, c.year, c.month) == (member_id, year, month):
                return c
        return None

    def get_calculation_by_id(self, calculation_id):
        return self.calculations.get(calculation_id)

    def list_calculations_for_member(self, member_id):
        items = [c for c in self.calculations.values() if c.member_id == member_id]
        return sorted(items, key=lambda c: (c.year, c.month), reverse=True)

    def create_calculation(self, **fields) -> MonthlySalaryCalculation:
        if self.get_calculation(fields["member_id"], fields["year"], fields["month"]):
            raise InvalidStateError("Salary already calculated for this month")
        calculation = MonthlySalaryCalculation(calculation_id=len(self.calculations) + 1, **fields)
        self.calculations[calculation.calculation_id] = calculation
        return calculation

    def add_adjustment(self, **fields) -> SalaryAdjustment:
        adjustment = SalaryAdjustment(adjustment_id=len(self.adjustments) + 1, **fields)
        self.adjustments.append(adjustment)
        return adjustment

    def list_adjustments(self, calculation_id):
        return [a for a in self.adjustments if a.calculation_id == calculation_id]


class RecordingAuditSink:
    def __init__(self):
        self.events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> list[tuple[str, str]]:
        return [(e.action_type, e.entity_type) for e in self.events]


class FailingAuditSink:
    def record(self, event: AuditEvent) -> None:
        raise RuntimeError("audit store unavailable")


MONTHLY_BAND = PaymentBand(band_id=1, name="Research Associate", monthly_base_salary=Decimal("30000"))
HOURLY_BAND = PaymentBand(band_id=2, name="Intern", hourly_rate=Decimal("250"))


@dataclass
class Lab:
    members: InMemoryMembers
    events: InMemoryEvents
    holidays: InMemoryHolidays
    settings: InMemorySettings
    attendance: InMemoryAttendance
    payroll: InMemoryPayroll
    audit_sink: RecordingAuditSink

    biometric_service: BiometricService
    derivation: AttendanceDerivationEngine
    attendance_service: AttendanceService
    resolver: ExceptionResolver
    freezer: FreezeController
    salary_engine: SalaryCalculationEngine
    salary_service: SalaryService


@pytest.fixture
def lab() -> Lab:
    members = InMemoryMembers()
    members.add(LabMember(member_id=1, full_name="Asha Rao", biometric_user_id="BIO-1"), MONTHLY_BAND)
    members.add(LabMember(member_id=2, full_name="Jonas Berg", biometric_user_id="BIO-2"), HOURLY_BAND)

    events = InMemoryEvents()
    holidays = InMemoryHolidays()
    settings = InMemorySettings()
    attendance = InMemoryAttendance()
    payroll = InMemoryPayroll()
    audit_sink = RecordingAuditSink()
    audit = AuditService(audit_sink)

    derivation = AttendanceDerivationEngine(
        attendance,
        members,
        events,
        CachedHolidayCalendar(holidays),
        CachedSettings(settings),
    )
    salary_engine = SalaryCalculationEngine(attendance, members, clock=fixed_clock)

    return Lab(
        members=members,
        events=events,
        holidays=holidays,
        settings=settings,
        attendance=attendance,
        payroll=payroll,
        audit_sink=audit_sink,
        biometric_service=BiometricService(events, audit, clock=fixed_clock),
        derivation=derivation,
        attendance_service=AttendanceService(attendance, members, audit, clock=fixed_clock),
        resolver=ExceptionResolver(attendance, audit, clock=fixed_clock),
        freezer=FreezeController(attendance, members, audit, clock=fixed_clock),
        salary_engine=salary_engine,
        salary_service=SalaryService(payroll, salary_engine, members, audit, clock=fixed_clock),
    )


@pytest.fixture
def failing_audit() -> AuditService:
    return AuditService(FailingAuditSink())


@pytest.fixture
def now() -> datetime:
    return NOW
