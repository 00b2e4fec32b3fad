from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LabMember, PaymentBand, PaymentBandAssignment
from .repository import MemberRepository


def _to_member(r: dict) -> LabMember:
    return LabMember(
        member_id=int(r["member_id"]),
        full_name=r["full_name"],
        biometric_user_id=str(r["biometric_user_id"]),
        is_active=bool(r["is_active"]),
    )


def _to_decimal(value) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, member_id: int) -> Optional[LabMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT member_id, full_name, biometric_user_id, is_active
                FROM lab_members
                WHERE member_id=%s
                """,
                (int(member_id),),
            )
            r = fetchone(cur)
            return _to_member(r) if r else None

    def list_active(self) -> Sequence[LabMember]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT member_id, full_name, biometric_user_id, is_active
                FROM lab_members
                WHERE is_active=1
                ORDER BY member_id ASC
                """
            )
            return [_to_member(r) for r in fetchall(cur)]

    def get_current_payment_band(self, member_id: int) -> Optional[PaymentBandAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    mpb.assignment_id, mpb.member_id, mpb.assigned_from, mpb.assigned_to,
                    pb.band_id, pb.name, pb.monthly_base_salary, pb.hourly_rate
                FROM member_payment_bands mpb
                JOIN payment_bands pb ON pb.band_id = mpb.band_id
                WHERE mpb.member_id=%s AND mpb.assigned_to IS NULL
                ORDER BY mpb.assigned_from DESC
                LIMIT 1
                """,
                (int(member_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return PaymentBandAssignment(
                assignment_id=int(r["assignment_id"]),
                member_id=int(r["member_id"]),
                band=PaymentBand(
                    band_id=int(r["band_id"]),
                    name=r["name"],
                    monthly_base_salary=_to_decimal(r.get("monthly_base_salary")),
                    hourly_rate=_to_decimal(r.get("hourly_rate")),
                ),
                assigned_from=r["assigned_from"],
                assigned_to=r.get("assigned_to"),
            )
