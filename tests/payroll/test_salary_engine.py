from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.lab_attendance.lab_attendance.core.enums import AttendanceStatus
from src.lab_attendance.lab_attendance.core.exceptions import ConfigurationError, InvalidStateError
from src.lab_attendance.lab_attendance.members.model import LabMember


def correct(lab, member_id: int, day: int, status: AttendanceStatus, hours=None):
    lab.attendance_service.manual_correction(
        member_id=member_id,
        work_date=date(2025, 1, day),
        status=status,
        hours_worked=hours,
        reason="payroll fixture",
        actor="admin",
    )


@pytest.fixture
def frozen_january(lab):
    for day in (1, 2, 3):
        correct(lab, 1, day, AttendanceStatus.FULL_DAY, 8)
    correct(lab, 1, 4, AttendanceStatus.HALF_DAY, 4.5)
    correct(lab, 1, 5, AttendanceStatus.LOP, 1)
    lab.holidays.days.add(date(2025, 1, 6))
    lab.derivation.derive_and_save(1, date(2025, 1, 6))
    lab.attendance_service.apply_leave_override(member_id=1, work_date=date(2025, 1, 7), half_day=True, actor="admin")
    lab.freezer.freeze(1, 2025, 1, "admin")
    return lab


def test_monthly_band_is_pro_rated_by_calendar_days(frozen_january):
    result = frozen_january.salary_engine.calculate(1, 2025, 1)

    assert result.total_days_worked == 5.0
    assert result.total_hours_worked == 29.5
    assert result.gross_salary == Decimal("4838.71")


def test_breakdown_is_a_self_contained_snapshot(frozen_january, now):
    breakdown = frozen_january.salary_engine.calculate(1, 2025, 1).breakdown

    assert breakdown["calculation_method"] == "monthly_pro_rata"
    assert breakdown["payment_band"] == {
        "name": "Research Associate",
        "monthly_base_salary": "30000",
        "hourly_rate": None,
    }
    summary = breakdown["attendance_summary"]
    assert summary["total_calendar_days"] == 31
    assert summary["full_days"] == 4
    assert summary["half_days"] == 2
    assert summary["lop_days"] == 1
    assert len(breakdown["daily_breakdown"]) == 7
    assert breakdown["daily_breakdown"][5] == {
        "date": "2025-01-06",
        "status": "HOLIDAY",
        "hours_worked": None,
        "paid_days": 1.0,
    }
    assert breakdown["gross_salary"] == "4838.71"
    assert breakdown["calculated_at"] == now.isoformat()


def test_hourly_band_uses_raw_hours(lab):
    correct(lab, 2, 2, AttendanceStatus.FULL_DAY, 8)
    correct(lab, 2, 3, AttendanceStatus.HALF_DAY, 4.5)
    lab.freezer.freeze(2, 2025, 1, "admin")

    result = lab.salary_engine.calculate(2, 2025, 1)

    assert result.gross_salary == Decimal("3125.00")
    assert result.breakdown["calculation_method"] == "hourly_rate"


def test_unfrozen_month_cannot_be_calculated(lab):
    correct(lab, 1, 2, AttendanceStatus.FULL_DAY, 8)

    with pytest.raises(InvalidStateError, match="not frozen"):
        lab.salary_engine.calculate(1, 2025, 1)


def test_missing_band_is_a_configuration_error(lab):
    lab.members.add(LabMember(member_id=3, full_name="No Band", biometric_user_id="BIO-3"))
    lab.freezer.freeze(3, 2025, 1, "admin")

    with pytest.raises(ConfigurationError):
        lab.salary_engine.calculate(3, 2025, 1)


def test_empty_frozen_month_pays_nothing(lab):
    lab.freezer.freeze(1, 2025, 2, "admin")

    result = lab.salary_engine.calculate(1, 2025, 2)

    assert result.gross_salary == Decimal("0.00")
    assert result.breakdown["attendance_summary"]["total_calendar_days"] == 28
