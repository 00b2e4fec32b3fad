from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AdjustmentType
from ..core.exceptions import InvalidStateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import MonthlySalaryCalculation, SalaryAdjustment
from .repository import PayrollRepository

_CALCULATION_COLUMNS = (
    "calculation_id, member_id, year, month, total_days_worked, total_hours_worked, "
    "gross_salary, breakdown, calculated_by, created_at"
)
_ADJUSTMENT_COLUMNS = "adjustment_id, calculation_id, member_id, adjustment_type, amount, reason, created_by, created_at"


def _to_calculation(r: dict) -> MonthlySalaryCalculation:
    return MonthlySalaryCalculation(
        calculation_id=int(r["calculation_id"]),
        member_id=int(r["member_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        total_days_worked=float(r["total_days_worked"]),
        total_hours_worked=float(r["total_hours_worked"]),
        gross_salary=Decimal(str(r["gross_salary"])),
        breakdown=load_json(r["breakdown"]) or {},
        calculated_by=str(r["calculated_by"]),
        created_at=r["created_at"],
    )


def _to_adjustment(r: dict) -> SalaryAdjustment:
    return SalaryAdjustment(
        adjustment_id=int(r["adjustment_id"]),
        calculation_id=int(r["calculation_id"]),
        member_id=int(r["member_id"]),
        adjustment_type=AdjustmentType(r["adjustment_type"]),
        amount=Decimal(str(r["amount"])),
        reason=r["reason"],
        created_by=str(r["created_by"]),
        created_at=r["created_at"],
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_calculation(self, member_id: int, year: int, month: int) -> Optional[MonthlySalaryCalculation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CALCULATION_COLUMNS} FROM monthly_salary_calculations
                WHERE member_id=%s AND year=%s AND month=%s
                """,
                (int(member_id), int(year), int(month)),
            )
            r = fetchone(cur)
            return _to_calculation(r) if r else None

    def get_calculation_by_id(self, calculation_id: int) -> Optional[MonthlySalaryCalculation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CALCULATION_COLUMNS} FROM monthly_salary_calculations WHERE calculation_id=%s",
                (int(calculation_id),),
            )
            r = fetchone(cur)
            return _to_calculation(r) if r else None

    def list_calculations_for_member(self, member_id: int) -> Sequence[MonthlySalaryCalculation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CALCULATION_COLUMNS} FROM monthly_salary_calculations
                WHERE member_id=%s
                ORDER BY year DESC, month DESC
                """,
                (int(member_id),),
            )
            return [_to_calculation(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO monthly_salary_calculations(
                        member_id, year, month, total_days_worked, total_hours_worked,
                        gross_salary, breakdown, calculated_by, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(member_id),
                        int(year),
                        int(month),
                        float(total_days_worked),
                        float(total_hours_worked),
                        gross_salary,
                        dump_json(breakdown),
                        calculated_by,
                        created_at,
                    ),
                )
            except IntegrityError as e:
                if is_duplicate_key(e):
                    raise InvalidStateError("Salary already calculated for this month") from e
                raise
            calculation_id = int(cur.lastrowid)

        return MonthlySalaryCalculation(
            calculation_id=calculation_id,
            member_id=int(member_id),
            year=int(year),
            month=int(month),
            total_days_worked=float(total_days_worked),
            total_hours_worked=float(total_hours_worked),
            gross_salary=gross_salary,
            breakdown=breakdown,
            calculated_by=calculated_by,
            created_at=created_at,
        )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO salary_adjustments(calculation_id, member_id, adjustment_type, amount, reason, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(calculation_id), int(member_id), adjustment_type.value, amount, reason, created_by, created_at),
            )
            adjustment_id = int(cur.lastrowid)

        return SalaryAdjustment(
            adjustment_id=adjustment_id,
            calculation_id=int(calculation_id),
            member_id=int(member_id),
            adjustment_type=adjustment_type,
            amount=amount,
            reason=reason,
            created_by=created_by,
            created_at=created_at,
        )

    def list_adjustments(self, calculation_id: int) -> Sequence[SalaryAdjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ADJUSTMENT_COLUMNS} FROM salary_adjustments
                WHERE calculation_id=%s
                ORDER BY created_at ASC, adjustment_id ASC
                """,
                (int(calculation_id),),
            )
            return [_to_adjustment(r) for r in fetchall(cur)]
