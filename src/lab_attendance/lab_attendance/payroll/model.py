from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from ..core.enums import AdjustmentType


@dataclass(frozen=True)
class SalaryComputation:
    """Output of the payroll engine before it is persisted."""

    gross_salary: Decimal
    total_days_worked: float
    total_hours_worked: float
    breakdown: dict[str, Any]


@dataclass(frozen=True)
class MonthlySalaryCalculation:
    """Immutable payroll of one member-month. ``breakdown`` is the stored snapshot."""

    calculation_id: int
    member_id: int
    year: int
    month: int
    total_days_worked: float
    total_hours_worked: float
    gross_salary: Decimal
    breakdown: dict[str, Any]
    calculated_by: str
    created_at: datetime


@dataclass(frozen=True)
class SalaryAdjustment:
    adjustment_id: int
    calculation_id: int
    member_id: int
    adjustment_type: AdjustmentType
    amount: Decimal
    reason: str
    created_by: str
    created_at: datetime


@dataclass(frozen=True)
class SalaryStatement:
    """Read model: a calculation with its adjustment ledger. Net is derived, never stored."""

    calculation: MonthlySalaryCalculation
    adjustments: Sequence[SalaryAdjustment] = field(default_factory=tuple)

    @property
    def adjustments_total(self) -> Decimal:
        return sum((a.amount for a in self.adjustments), Decimal("0"))

    @property
    def net_salary(self) -> Decimal:
        return self.calculation.gross_salary + self.adjustments_total

    def latest_adjustment(self) -> Optional[SalaryAdjustment]:
        return self.adjustments[-1] if self.adjustments else None
