from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Sequence

from ..audit.service import AuditService
from ..common.batch import BatchResult
from ..common.datetime_utils import month_range, now_local
from ..common.validators import require_non_empty
from ..core.enums import AdjustmentType
from ..core.exceptions import DomainError, InvalidStateError, NotFoundError, ValidationError
from ..members.repository import MemberRepository
from .calculator.base import round_money
from .engine import SalaryCalculationEngine
from .model import MonthlySalaryCalculation, SalaryAdjustment, SalaryStatement
from .repository import PayrollRepository

logger = logging.getLogger(__name__)


def _validate_adjustment_amount(adjustment_type: AdjustmentType, amount) -> Decimal:
    try:
        value = round_money(Decimal(str(amount)))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError("Adjustment amount must be a number") from e

    if value == 0:
        raise ValidationError("Adjustment amount must not be zero")
    if adjustment_type == AdjustmentType.BONUS and value < 0:
        raise ValidationError("Bonus amount must be positive")
    if adjustment_type == AdjustmentType.DEDUCTION and value > 0:
        raise ValidationError("Deduction amount must be negative")
    return value


class SalaryService:
    """Persists monthly payroll and the append-only adjustment ledger on top of it."""

    def __init__(
        self,
        payroll: PayrollRepository,
        engine: SalaryCalculationEngine,
        members: MemberRepository,
        audit: AuditService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._payroll = payroll
        self._engine = engine
        self._members = members
        self._audit = audit
        self._clock = clock

    def calculate_and_save(self, member_id: int, year: int, month: int, actor: str) -> MonthlySalaryCalculation:
        actor = require_non_empty(actor, "Actor")
        month_range(year, month)
        if not self._members.get_by_id(int(member_id)):
            raise NotFoundError(f"Lab member {member_id} not found")

        if self._payroll.get_calculation(int(member_id), int(year), int(month)):
            raise InvalidStateError("Salary already calculated for this month")

        computation = self._engine.calculate(member_id, year, month)
        calculation = self._payroll.create_calculation(
            member_id=int(member_id),
            year=int(year),
            month=int(month),
            total_days_worked=computation.total_days_worked,
            total_hours_worked=computation.total_hours_worked,
            gross_salary=computation.gross_salary,
            breakdown=computation.breakdown,
            calculated_by=actor,
            created_at=self._clock(),
        )

        self._audit.record(
            actor=actor,
            action_type="CALCULATED",
            entity_type="MonthlySalaryCalculation",
            entity_id=calculation.calculation_id,
            after=calculation,
        )
        logger.info(
            "Salary calculated: member %s for %04d-%02d, gross %s",
            member_id,
            int(year),
            int(month),
            calculation.gross_salary,
        )
        return calculation

    def calculate_for_all(self, year: int, month: int, actor: str) -> BatchResult:
        actor = require_non_empty(actor, "Actor")
        month_range(year, month)
        batch = BatchResult()

        for member in self._members.list_active():
            try:
                calculation = self.calculate_and_save(member.member_id, year, month, actor)
            except DomainError as e:
                logger.error("Failed to calculate salary for member %s: %s", member.member_id, e)
                batch.add_error(member.member_id, str(e))
                continue
            except Exception as e:
                logger.exception("Failed to calculate salary for member %s", member.member_id)
                batch.add_error(member.member_id, str(e))
                continue
            batch.add_success(member.member_id, calculation)

        logger.info(
            "Bulk salary calculation for %04d-%02d completed: %s success, %s failures",
            int(year),
            int(month),
            batch.success,
            batch.failures,
        )
        return batch

    def get_salary_calculation(self, member_id: int, year: int, month: int) -> SalaryStatement:
        calculation = self._payroll.get_calculation(int(member_id), int(year), int(month))
        if not calculation:
            raise NotFoundError("Salary calculation not found")
        return SalaryStatement(
            calculation=calculation,
            adjustments=tuple(self._payroll.list_adjustments(calculation.calculation_id)),
        )

    def list_for_member(self, member_id: int) -> Sequence[MonthlySalaryCalculation]:
        return self._payroll.list_calculations_for_member(int(member_id))

    def add_adjustment(
        self,
        *,
        calculation_id: int,
        adjustment_type: AdjustmentType,
        amount,
        reason: str,
        actor: str,
    ) -> SalaryAdjustment:
        """Append a signed correction. The calculation itself is never edited."""
        reason = require_non_empty(reason, "Reason")
        actor = require_non_empty(actor, "Actor")
        try:
            adjustment_type = AdjustmentType(adjustment_type)
        except ValueError as e:
            raise ValidationError(f"Unknown adjustment type: {adjustment_type}") from e
        value = _validate_adjustment_amount(adjustment_type, amount)

        calculation = self._payroll.get_calculation_by_id(int(calculation_id))
        if not calculation:
            raise NotFoundError("Salary calculation not found")

        adjustment = self._payroll.add_adjustment(
            calculation_id=calculation.calculation_id,
            member_id=calculation.member_id,
            adjustment_type=adjustment_type,
            amount=value,
            reason=reason,
            created_by=actor,
            created_at=self._clock(),
        )

        self._audit.record(
            actor=actor,
            action_type="CREATED",
            entity_type="SalaryAdjustment",
            entity_id=adjustment.adjustment_id,
            after=adjustment,
        )
        logger.info(
            "Salary adjustment %s of %s added to calculation %s by %s",
            adjustment_type.value,
            value,
            calculation.calculation_id,
            actor,
        )
        return adjustment
