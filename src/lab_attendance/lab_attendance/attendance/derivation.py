from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..biometric.model import BiometricEvent
from ..biometric.repository import BiometricEventRepository
from ..common.batch import BatchResult
from ..common.datetime_utils import end_of_day, hours_between, iter_dates
from ..core.constants import (
    DEFAULT_FULL_DAY_MIN_HOURS,
    DEFAULT_HALF_DAY_MIN_HOURS,
    END_OF_DAY_MIN_OPEN_HOURS,
    FULL_DAY_MIN_HOURS_KEY,
    HALF_DAY_MIN_HOURS_KEY,
)
from ..core.enums import AttendanceSource, AttendanceStatus, BiometricEventType, ExceptionType
from ..core.exceptions import AttendanceFrozenError, DomainError, NotFoundError, ValidationError
from ..holidays.repository import HolidayCalendar
from ..members.model import LabMember
from ..members.repository import MemberRepository
from ..settings.repository import SettingsProvider
from ..settings.service import get_float_setting
from .model import AttendanceRecord, DerivationResult, DerivedException
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

NO_LOGS = "No biometric logs found for this date"
CONSECUTIVE_IN = "Consecutive IN events detected without OUT"
OUT_BEFORE_IN = "OUT event before IN event"
IN_NEAR_END_OF_DAY = "IN event near end of day without matching OUT"

# Records from these sources override biometric data and survive re-derivation.
PROTECTED_SOURCES = frozenset({AttendanceSource.MANUAL, AttendanceSource.LEAVE_OVERRIDE})


@dataclass(frozen=True)
class LogSummary:
    hours_worked: float
    first_in: Optional[datetime]
    last_out: Optional[datetime]
    inconsistency: Optional[str] = None


@dataclass(frozen=True)
class Thresholds:
    full_day_min_hours: float = DEFAULT_FULL_DAY_MIN_HOURS
    half_day_min_hours: float = DEFAULT_HALF_DAY_MIN_HOURS

    def classify(self, hours: float) -> AttendanceStatus:
        if hours >= self.full_day_min_hours:
            return AttendanceStatus.FULL_DAY
        if hours >= self.half_day_min_hours:
            return AttendanceStatus.HALF_DAY
        return AttendanceStatus.LOP


def summarize_events(events: Sequence[BiometricEvent]) -> LogSummary:
    """Pair IN/OUT swipes of one day into worked hours.

    Sequencing problems are reported through ``inconsistency``; this never raises.
    """
    ordered = sorted(events, key=lambda e: (e.device_timestamp, e.event_id))

    first_in: Optional[datetime] = None
    last_out: Optional[datetime] = None
    open_in: Optional[datetime] = None
    total = 0.0

    for event in ordered:
        if event.event_type == BiometricEventType.IN:
            if open_in is not None:
                return LogSummary(0.0, first_in, last_out, CONSECUTIVE_IN)
            open_in = event.device_timestamp
            if first_in is None:
                first_in = event.device_timestamp
        elif event.event_type == BiometricEventType.OUT:
            if open_in is None:
                return LogSummary(0.0, first_in, last_out, OUT_BEFORE_IN)
            last_out = event.device_timestamp
            total += hours_between(open_in, event.device_timestamp)
            open_in = None
        # UNKNOWN swipes carry no direction: skipped without breaking pairing.

    if open_in is not None:
        day_end = end_of_day(open_in.date())
        remaining = hours_between(open_in, day_end)
        if remaining < END_OF_DAY_MIN_OPEN_HOURS:
            return LogSummary(round(total, 2), first_in, last_out, IN_NEAR_END_OF_DAY)

        # TODO: crediting work until midnight fabricates hours; keep until the
        # payroll owners decide whether an unmatched IN should raise an exception.
        logger.warning("Missing OUT event for IN at %s, assuming work till end of day", open_in.isoformat())
        total += remaining
        last_out = day_end

    return LogSummary(round(total, 2), first_in, last_out)


class AttendanceDerivationEngine:
    """Derives daily attendance from biometric logs.

    Derivation is deterministic and re-runnable until the month is frozen.
    Data-quality problems become PENDING_EXCEPTION results, never errors.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        events: BiometricEventRepository,
        holidays: HolidayCalendar,
        settings: SettingsProvider,
    ):
        self._attendance = attendance
        self._members = members
        self._events = events
        self._holidays = holidays
        self._settings = settings

    def load_thresholds(self) -> Thresholds:
        return Thresholds(
            full_day_min_hours=get_float_setting(self._settings, FULL_DAY_MIN_HOURS_KEY, DEFAULT_FULL_DAY_MIN_HOURS),
            half_day_min_hours=get_float_setting(self._settings, HALF_DAY_MIN_HOURS_KEY, DEFAULT_HALF_DAY_MIN_HOURS),
        )

    def derive(self, member_id: int, work_date: date) -> DerivationResult:
        if self._holidays.is_holiday(work_date):
            return self._holiday_result()

        member = self._members.get_by_id(int(member_id))
        if not member:
            raise NotFoundError(f"Lab member {member_id} not found")
        return self._derive_from_logs(member, work_date, self.load_thresholds())

    @staticmethod
    def _holiday_result() -> DerivationResult:
        return DerivationResult(
            status=AttendanceStatus.HOLIDAY,
            source=AttendanceSource.HOLIDAY,
            hours_worked=None,
            first_in=None,
            last_out=None,
        )

    def _derive_from_logs(self, member: LabMember, work_date: date, thresholds: Thresholds) -> DerivationResult:
        logs = self._events.get_logs_for_subject_on_date(member.biometric_user_id, work_date)
        if not logs:
            return DerivationResult(
                status=AttendanceStatus.PENDING_EXCEPTION,
                source=AttendanceSource.BIOMETRIC,
                hours_worked=0.0,
                first_in=None,
                last_out=None,
                exception=DerivedException(ExceptionType.MISSING_DATA, NO_LOGS),
            )

        summary = summarize_events(logs)
        if summary.inconsistency:
            return DerivationResult(
                status=AttendanceStatus.PENDING_EXCEPTION,
                source=AttendanceSource.BIOMETRIC,
                hours_worked=summary.hours_worked,
                first_in=summary.first_in,
                last_out=summary.last_out,
                exception=DerivedException(ExceptionType.INCONSISTENT_LOGS, summary.inconsistency),
            )

        return DerivationResult(
            status=thresholds.classify(summary.hours_worked),
            source=AttendanceSource.BIOMETRIC,
            hours_worked=summary.hours_worked,
            first_in=summary.first_in,
            last_out=summary.last_out,
        )

    def derive_and_save(self, member_id: int, work_date: date) -> AttendanceRecord:
        """Derive one member-day and store it.

        Raises ``AttendanceFrozenError`` when the day is frozen. A manual or
        leave record is returned unchanged.
        """
        result = self.derive(member_id, work_date)
        outcome = self._attendance.upsert_record(
            member_id=int(member_id),
            work_date=work_date,
            change=result.to_change(),
            exception=result.exception,
            keep_sources=PROTECTED_SOURCES,
        )
        return outcome.record

    def derive_for_date(self, work_date: date) -> BatchResult:
        """Derive and store attendance for every active member (daily job)."""
        batch = BatchResult()
        is_holiday = self._holidays.is_holiday(work_date)
        thresholds = self.load_thresholds()

        for member in self._members.list_active():
            try:
                if is_holiday:
                    result = self._holiday_result()
                else:
                    result = self._derive_from_logs(member, work_date, thresholds)

                outcome = self._attendance.upsert_record(
                    member_id=member.member_id,
                    work_date=work_date,
                    change=result.to_change(),
                    exception=result.exception,
                    keep_sources=PROTECTED_SOURCES,
                )
            except AttendanceFrozenError:
                batch.add_skipped(member.member_id, "Attendance is frozen")
                continue
            except DomainError as e:
                logger.error("Failed to derive attendance for member %s on %s: %s", member.member_id, work_date, e)
                batch.add_error(member.member_id, str(e))
                continue
            except Exception as e:
                logger.exception("Failed to derive attendance for member %s on %s", member.member_id, work_date)
                batch.add_error(member.member_id, str(e))
                continue

            if not outcome.applied:
                batch.add_skipped(member.member_id, f"Kept {outcome.record.source.value.lower()} record")
                continue

            if outcome.exception is not None:
                batch.exceptions += 1
            batch.add_success(member.member_id, outcome.record)

        logger.info(
            "Attendance derivation completed for %s: %s success, %s skipped, %s failures, %s exceptions",
            work_date.isoformat(),
            batch.success,
            batch.skipped,
            batch.failures,
            batch.exceptions,
        )
        return batch

    def rederive_for_range(self, start_date: date, end_date: date) -> list[tuple[date, BatchResult]]:
        """Re-run derivation day by day, e.g. after biometric data was corrected."""
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        return [(day, self.derive_for_date(day)) for day in iter_dates(start_date, end_date)]
