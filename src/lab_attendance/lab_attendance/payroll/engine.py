from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from ..attendance.paid_days import paid_day_weight
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_range, now_local
from ..core.exceptions import ConfigurationError, InvalidStateError
from ..members.repository import MemberRepository
from .calculator.factory import PayrollCalculatorFactory
from .model import SalaryComputation


class SalaryCalculationEngine:
    """Computes a member-month's gross pay from frozen attendance only.

    The returned breakdown is a self-contained snapshot (band values, per-day
    list, totals) so later band or rule changes never alter stored payroll.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        *,
        calculator_factory: Optional[PayrollCalculatorFactory] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._members = members
        self._factory = calculator_factory or PayrollCalculatorFactory()
        self._clock = clock

    def calculate(self, member_id: int, year: int, month: int) -> SalaryComputation:
        start, end = month_range(year, month)
        if self._attendance.get_freeze(int(member_id), int(year), int(month)) is None:
            raise InvalidStateError("Cannot calculate salary: attendance not frozen for this month")

        records = self._attendance.list_for_member(int(member_id), start_date=start, end_date=end, frozen_only=True)

        assignment = self._members.get_current_payment_band(int(member_id))
        if not assignment:
            raise ConfigurationError("No payment band assigned to this lab member")
        band = assignment.band
        calculator = self._factory.for_band(band)

        total_days = 0.0
        total_hours = 0.0
        daily = []
        for record in records:
            paid = paid_day_weight(record.status)
            total_days += paid
            total_hours += record.hours_worked or 0.0
            daily.append(
                {
                    "date": record.work_date.isoformat(),
                    "status": record.status.value,
                    "hours_worked": record.hours_worked,
                    "paid_days": paid,
                }
            )
        total_hours = round(total_hours, 2)

        days_in_month = end.day
        gross = calculator.gross(
            band,
            days_in_month=days_in_month,
            total_days_worked=total_days,
            total_hours_worked=total_hours,
        )

        breakdown = {
            "year": int(year),
            "month": int(month),
            "payment_band": {
                "name": band.name,
                "monthly_base_salary": str(band.monthly_base_salary) if band.monthly_base_salary is not None else None,
                "hourly_rate": str(band.hourly_rate) if band.hourly_rate is not None else None,
            },
            "attendance_summary": {
                "total_calendar_days": days_in_month,
                "total_days_worked": total_days,
                "total_hours_worked": total_hours,
                "full_days": sum(1 for d in daily if d["paid_days"] == 1.0),
                "half_days": sum(1 for d in daily if d["paid_days"] == 0.5),
                "lop_days": sum(1 for d in daily if d["paid_days"] == 0.0),
            },
            "calculation_method": calculator.method.value,
            "daily_breakdown": daily,
            "gross_salary": str(gross),
            "calculated_at": self._clock().isoformat(),
        }

        return SalaryComputation(
            gross_salary=gross,
            total_days_worked=total_days,
            total_hours_worked=total_hours,
            breakdown=breakdown,
        )
