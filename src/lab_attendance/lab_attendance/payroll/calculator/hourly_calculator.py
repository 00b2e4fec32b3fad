from __future__ import annotations

from decimal import Decimal

from ...core.enums import CalculationMethod
from ...members.model import PaymentBand
from .base import PayrollCalculator, round_money


class HourlyRateCalculator(PayrollCalculator):
    """Hourly rate times raw hours worked."""

    method = CalculationMethod.HOURLY_RATE

    def gross(
        self,
        band: PaymentBand,
        *,
        days_in_month: int,
        total_days_worked: float,
        total_hours_worked: float,
    ) -> Decimal:
        return round_money(Decimal(band.hourly_rate) * Decimal(str(total_hours_worked)))
