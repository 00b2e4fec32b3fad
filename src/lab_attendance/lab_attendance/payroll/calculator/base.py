from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal

from ...core.constants import MONEY_PRECISION
from ...core.enums import CalculationMethod
from ...members.model import PaymentBand


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    method: CalculationMethod

    @abstractmethod
    def gross(
        self,
        band: PaymentBand,
        *,
        days_in_month: int,
        total_days_worked: float,
        total_hours_worked: float,
    ) -> Decimal:
        """Gross pay rounded to 2 decimals."""

        raise NotImplementedError
