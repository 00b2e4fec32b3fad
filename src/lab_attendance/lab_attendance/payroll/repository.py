from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AdjustmentType
from .model import MonthlySalaryCalculation, SalaryAdjustment


class PayrollRepository(Protocol):
    def get_calculation(self, member_id: int, year: int, month: int) -> Optional[MonthlySalaryCalculation]:
        raise NotImplementedError

    def get_calculation_by_id(self, calculation_id: int) -> Optional[MonthlySalaryCalculation]:
        raise NotImplementedError

    def list_calculations_for_member(self, member_id: int) -> Sequence[MonthlySalaryCalculation]:
        """Newest month first."""

        raise NotImplementedError

    def create_calculation(
        self,
        *,
        member_id: int,
        year: int,
        month: int,
        total_days_worked: float,
        total_hours_worked: float,
        gross_salary: Decimal,
        breakdown: dict[str, Any],
        calculated_by: str,
        created_at: datetime,
    ) -> MonthlySalaryCalculation:
        """Insert once per (member, year, month); a duplicate raises ``InvalidStateError``."""

        raise NotImplementedError

    def add_adjustment(
        self,
        *,
        calculation_id: int,
        member_id: int,
        adjustment_type: AdjustmentType,
        amount: Decimal,
        reason: str,
        created_by: str,
        created_at: datetime,
    ) -> SalaryAdjustment:
        raise NotImplementedError

    def list_adjustments(self, calculation_id: int) -> Sequence[SalaryAdjustment]:
        """Oldest first."""

        raise NotImplementedError
