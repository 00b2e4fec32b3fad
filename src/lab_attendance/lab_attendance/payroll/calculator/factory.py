from __future__ import annotations

from dataclasses import dataclass

from ...core.exceptions import ConfigurationError
from ...members.model import PaymentBand
from .base import PayrollCalculator
from .hourly_calculator import HourlyRateCalculator
from .monthly_calculator import MonthlyProRataCalculator


@dataclass
class PayrollCalculatorFactory:
    """Factory Pattern: pick the calculation mode configured on a payment band.

    A monthly base wins when a band carries both rates.
    """

    def for_band(self, band: PaymentBand) -> PayrollCalculator:
        if band.monthly_base_salary:
            return MonthlyProRataCalculator()
        if band.hourly_rate:
            return HourlyRateCalculator()
        raise ConfigurationError(f"Payment band {band.name!r} has neither monthly nor hourly rate configured")
