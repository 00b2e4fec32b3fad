from __future__ import annotations

from decimal import Decimal

from ...core.enums import CalculationMethod
from ...members.model import PaymentBand
from .base import PayrollCalculator, round_money


class MonthlyProRataCalculator(PayrollCalculator):
    """Monthly base pro-rated by calendar days: base / days_in_month * paid days."""

    method = CalculationMethod.MONTHLY_PRO_RATA

    def gross(
        self,
        band: PaymentBand,
        *,
        days_in_month: int,
        total_days_worked: float,
        total_hours_worked: float,
    ) -> Decimal:
        per_day = Decimal(band.monthly_base_salary) / Decimal(days_in_month)
        return round_money(per_day * Decimal(str(total_days_worked)))
