from __future__ import annotations

from datetime import date

import pytest

from src.lab_attendance.lab_attendance.core.enums import AttendanceSource, AttendanceStatus
from src.lab_attendance.lab_attendance.core.exceptions import NotFoundError, ValidationError

DAY = date(2025, 1, 6)


def test_manual_correction_creates_record_with_reason(lab):
    record = lab.attendance_service.manual_correction(
        member_id=1,
        work_date=DAY,
        status=AttendanceStatus.HALF_DAY,
        hours_worked=4.5,
        reason="Forgot to swipe out",
        actor="admin",
    )

    assert record.source == AttendanceSource.MANUAL
    assert record.status == AttendanceStatus.HALF_DAY
    assert record.hours_worked == 4.5
    assert record.manual_reason == "Forgot to swipe out"
    assert lab.audit_sink.events[-1].action_type == "CREATED"


def test_manual_correction_overwrites_biometric_record(lab):
    lab.derivation.derive_and_save(1, DAY)

    record = lab.attendance_service.manual_correction(
        member_id=1,
        work_date=DAY,
        status=AttendanceStatus.FULL_DAY,
        hours_worked=8,
        reason="Worked at field site",
        actor="admin",
    )

    event = lab.audit_sink.events[-1]
    assert record.status == AttendanceStatus.FULL_DAY
    assert event.action_type == "UPDATED"
    assert event.before["status"] == AttendanceStatus.PENDING_EXCEPTION
    assert event.after["status"] == AttendanceStatus.FULL_DAY


@pytest.mark.parametrize("reason", ["", "   ", None])
def test_manual_correction_requires_reason(lab, reason):
    with pytest.raises(ValidationError):
        lab.attendance_service.manual_correction(
            member_id=1, work_date=DAY, status=AttendanceStatus.FULL_DAY, hours_worked=8, reason=reason, actor="admin"
        )


def test_manual_correction_rejects_negative_hours(lab):
    with pytest.raises(ValidationError):
        lab.attendance_service.manual_correction(
            member_id=1, work_date=DAY, status=AttendanceStatus.LOP, hours_worked=-1, reason="x", actor="admin"
        )


def test_manual_correction_unknown_member(lab):
    with pytest.raises(NotFoundError):
        lab.attendance_service.manual_correction(
            member_id=42, work_date=DAY, status=AttendanceStatus.LOP, hours_worked=0, reason="x", actor="admin"
        )


def test_leave_override_is_kept_by_derivation(lab):
    lab.attendance_service.apply_leave_override(member_id=1, work_date=DAY, half_day=True, actor="admin")

    batch = lab.derivation.derive_for_date(DAY)

    record = lab.attendance.get_for_member_and_date(1, DAY)
    assert record.status == AttendanceStatus.CASUAL_LEAVE_HALF
    assert record.source == AttendanceSource.LEAVE_OVERRIDE
    assert batch.skipped == 1


def test_attendance_listing_is_newest_first(lab):
    for day in (date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 7)):
        lab.derivation.derive_and_save(1, day)

    records = lab.attendance_service.get_attendance_for_member(1)

    assert [r.work_date.day for r in records] == [8, 7, 6]


def test_attendance_listing_rejects_inverted_range(lab):
    with pytest.raises(ValidationError):
        lab.attendance_service.get_attendance_for_member(1, start_date=date(2025, 1, 9), end_date=date(2025, 1, 1))


def test_monthly_statistics(lab):
    service = lab.attendance_service
    service.manual_correction(
        member_id=1, work_date=date(2025, 1, 2), status=AttendanceStatus.FULL_DAY, hours_worked=8, reason="r", actor="a"
    )
    service.manual_correction(
        member_id=1, work_date=date(2025, 1, 3), status=AttendanceStatus.HALF_DAY, hours_worked=4.25, reason="r", actor="a"
    )
    service.apply_leave_override(member_id=1, work_date=date(2025, 1, 6), half_day=False, actor="a")
    lab.derivation.derive_and_save(1, date(2025, 1, 7))

    stats = service.get_monthly_statistics(1, 2025, 1)

    assert stats.total_days == 4
    assert stats.full_days == 1
    assert stats.half_days == 1
    assert stats.casual_leave_full == 1
    assert stats.pending_exceptions == 1
    assert stats.total_paid_days == 2.5
    assert stats.total_hours_worked == 12.25
