from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import month_range
from ..core.enums import AttendanceSource, AttendanceStatus, ExceptionStatus, ExceptionType
from ..core.exceptions import AttendanceFrozenError, InvalidStateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import (
    AttendanceChange,
    AttendanceException,
    AttendanceFreeze,
    AttendanceRecord,
    DerivedException,
    UpsertOutcome,
)
from .repository import AttendanceRepository

_RECORD_COLUMNS = (
    "record_id, member_id, work_date, status, source, hours_worked, first_in, last_out, "
    "is_frozen, frozen_at, manual_reason"
)
_EXCEPTION_COLUMNS = (
    "exception_id, attendance_record_id, member_id, work_date, exception_type, description, "
    "status, resolution_note, resolved_by, resolved_at"
)


def _to_record(r: dict) -> AttendanceRecord:
    hours = r.get("hours_worked")
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        member_id=int(r["member_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        source=AttendanceSource(r["source"]),
        hours_worked=float(hours) if hours is not None else None,
        first_in=r.get("first_in"),
        last_out=r.get("last_out"),
        is_frozen=bool(r["is_frozen"]),
        frozen_at=r.get("frozen_at"),
        manual_reason=r.get("manual_reason"),
    )


def _to_exception(r: dict) -> AttendanceException:
    return AttendanceException(
        exception_id=int(r["exception_id"]),
        attendance_record_id=int(r["attendance_record_id"]),
        member_id=int(r["member_id"]),
        work_date=r["work_date"],
        exception_type=ExceptionType(r["exception_type"]),
        description=r["description"],
        status=ExceptionStatus(r["status"]),
        resolution_note=r.get("resolution_note"),
        resolved_by=r.get("resolved_by"),
        resolved_at=r.get("resolved_at"),
    )


def _to_freeze(r: dict) -> AttendanceFreeze:
    return AttendanceFreeze(
        freeze_id=int(r["freeze_id"]),
        member_id=int(r["member_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        frozen_by=str(r["frozen_by"]),
        frozen_at=r["frozen_at"],
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_member_and_date(self, member_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE member_id=%s AND work_date=%s",
                (int(member_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_member(
        self,
        member_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        frozen_only: bool = False,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["member_id=%s"]
        params: list[object] = [int(member_id)]
        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        if frozen_only:
            clauses.append("is_frozen=1")

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE {where} ORDER BY work_date ASC",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def upsert_record(
        self,
        *,
        member_id: int,
        work_date: date,
        change: AttendanceChange,
        exception: Optional[DerivedException] = None,
        keep_sources: Collection[AttendanceSource] = (),
    ) -> UpsertOutcome:
        with db_cursor(self._conn_factory) as (_, cur):
            # Shared lock on the freeze key: a concurrent freeze of this month
            # either commits first (and we reject) or waits for us.
            cur.execute(
                """
                SELECT freeze_id FROM attendance_freezes
                WHERE member_id=%s AND year=%s AND month=%s
                LOCK IN SHARE MODE
                """,
                (int(member_id), work_date.year, work_date.month),
            )
            if fetchone(cur):
                raise AttendanceFrozenError("Cannot modify frozen attendance")

            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS} FROM attendance_records
                WHERE member_id=%s AND work_date=%s
                FOR UPDATE
                """,
                (int(member_id), work_date),
            )
            r = fetchone(cur)
            previous = _to_record(r) if r else None

            if previous and previous.is_frozen:
                raise AttendanceFrozenError("Cannot modify frozen attendance")
            if previous and previous.source in keep_sources:
                return UpsertOutcome(record=previous, previous=previous, applied=False)

            values = (
                change.status.value,
                change.source.value,
                change.hours_worked,
                change.first_in,
                change.last_out,
                change.manual_reason,
            )
            if previous:
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, source=%s, hours_worked=%s, first_in=%s, last_out=%s, manual_reason=%s
                    WHERE record_id=%s
                    """,
                    values + (previous.record_id,),
                )
                record_id = previous.record_id
            else:
                cur.execute(
                    """
                    INSERT INTO attendance_records(status, source, hours_worked, first_in, last_out, manual_reason, member_id, work_date)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    values + (int(member_id), work_date),
                )
                record_id = int(cur.lastrowid)

            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE record_id=%s", (record_id,))
            record = _to_record(fetchone(cur))

            saved_exception = None
            if exception is not None:
                cur.execute(
                    """
                    INSERT INTO attendance_exceptions(attendance_record_id, member_id, work_date, exception_type, description)
                    VALUES(%s,%s,%s,%s,%s)
                    ON DUPLICATE KEY UPDATE exception_type=VALUES(exception_type), description=VALUES(description)
                    """,
                    (record_id, int(member_id), work_date, exception.exception_type.value, exception.description),
                )
                cur.execute(
                    f"SELECT {_EXCEPTION_COLUMNS} FROM attendance_exceptions WHERE attendance_record_id=%s",
                    (record_id,),
                )
                saved_exception = _to_exception(fetchone(cur))

            return UpsertOutcome(record=record, previous=previous, applied=True, exception=saved_exception)

    def get_exception(self, exception_id: int) -> Optional[AttendanceException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EXCEPTION_COLUMNS} FROM attendance_exceptions WHERE exception_id=%s",
                (int(exception_id),),
            )
            r = fetchone(cur)
            return _to_exception(r) if r else None

    def get_exception_for_record(self, record_id: int) -> Optional[AttendanceException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EXCEPTION_COLUMNS} FROM attendance_exceptions WHERE attendance_record_id=%s",
                (int(record_id),),
            )
            r = fetchone(cur)
            return _to_exception(r) if r else None

    def list_exceptions(
        self,
        *,
        status: Optional[ExceptionStatus] = None,
        member_id: Optional[int] = None,
    ) -> Sequence[AttendanceException]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if member_id is not None:
            clauses.append("member_id=%s")
            params.append(int(member_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EXCEPTION_COLUMNS} FROM attendance_exceptions WHERE {where} ORDER BY work_date DESC, exception_id DESC",
                tuple(params),
            )
            return [_to_exception(r) for r in fetchall(cur)]

    def count_pending_exceptions(self, member_id: int, start_date: date, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n FROM attendance_exceptions
                WHERE member_id=%s AND work_date BETWEEN %s AND %s AND status='PENDING'
                """,
                (int(member_id), start_date, end_date),
            )
            return int(fetchone(cur)["n"])

    def resolve_exception(
        self,
        *,
        exception_id: int,
        resolution_note: str,
        resolved_by: str,
        resolved_at: datetime,
    ) -> Optional[AttendanceException]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_exceptions ae
                JOIN attendance_records ar ON ar.record_id = ae.attendance_record_id
                SET ae.status='RESOLVED', ae.resolution_note=%s, ae.resolved_by=%s, ae.resolved_at=%s
                WHERE ae.exception_id=%s AND ae.status='PENDING' AND ar.is_frozen=0
                """,
                (resolution_note, resolved_by, resolved_at, int(exception_id)),
            )
            if cur.rowcount <= 0:
                return None
            cur.execute(
                f"SELECT {_EXCEPTION_COLUMNS} FROM attendance_exceptions WHERE exception_id=%s",
                (int(exception_id),),
            )
            return _to_exception(fetchone(cur))

    def get_freeze(self, member_id: int, year: int, month: int) -> Optional[AttendanceFreeze]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT freeze_id, member_id, year, month, frozen_by, frozen_at
                FROM attendance_freezes
                WHERE member_id=%s AND year=%s AND month=%s
                """,
                (int(member_id), int(year), int(month)),
            )
            r = fetchone(cur)
            return _to_freeze(r) if r else None

    def freeze_month(
        self,
        *,
        member_id: int,
        year: int,
        month: int,
        frozen_by: str,
        frozen_at: datetime,
    ) -> AttendanceFreeze:
        start, end = month_range(year, month)
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_freezes(member_id, year, month, frozen_by, frozen_at)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(member_id), int(year), int(month), frozen_by, frozen_at),
                )
            except IntegrityError as e:
                if is_duplicate_key(e):
                    raise InvalidStateError("Attendance already frozen for this month") from e
                raise
            freeze_id = int(cur.lastrowid)

            # Re-check inside the transaction: derivation may have added an
            # exception after the caller's pre-check.
            cur.execute(
                """
                SELECT COUNT(*) AS n FROM attendance_exceptions
                WHERE member_id=%s AND work_date BETWEEN %s AND %s AND status='PENDING'
                FOR UPDATE
                """,
                (int(member_id), start, end),
            )
            pending = int(fetchone(cur)["n"])
            if pending > 0:
                raise InvalidStateError(
                    f"Cannot freeze attendance: {pending} pending exception(s) must be resolved first"
                )

            cur.execute(
                """
                UPDATE attendance_records
                SET is_frozen=1, frozen_at=%s
                WHERE member_id=%s AND work_date BETWEEN %s AND %s
                """,
                (frozen_at, int(member_id), start, end),
            )

        return AttendanceFreeze(
            freeze_id=freeze_id,
            member_id=int(member_id),
            year=int(year),
            month=int(month),
            frozen_by=frozen_by,
            frozen_at=frozen_at,
        )
