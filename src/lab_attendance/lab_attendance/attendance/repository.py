from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import AttendanceSource, ExceptionStatus
from .model import (
    AttendanceChange,
    AttendanceException,
    AttendanceFreeze,
    AttendanceRecord,
    DerivedException,
    UpsertOutcome,
)


class AttendanceRepository(Protocol):
    """Attendance records, their exceptions and month freezes.

    Records and freezes share one repository because the freeze flip and the
    frozen guard on writes must run inside the same transaction.
    """

    def get_for_member_and_date(self, member_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_member(
        self,
        member_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        frozen_only: bool = False,
    ) -> Sequence[AttendanceRecord]:
        """Records ordered by ``work_date`` ascending."""

        raise NotImplementedError

    def upsert_record(
        self,
        *,
        member_id: int,
        work_date: date,
        change: AttendanceChange,
        exception: Optional[DerivedException] = None,
        keep_sources: Collection[AttendanceSource] = (),
    ) -> UpsertOutcome:
        """Create or update the (member, date) record in one transaction.

        Raises ``AttendanceFrozenError`` if the record or its month is frozen.
        Leaves the record untouched (``applied=False``) when its current source
        is in ``keep_sources``. When ``exception`` is given the linked exception
        is created, or its type and description are updated.
        """

        raise NotImplementedError

    # -- exceptions ---------------------------------------------------------

    def get_exception(self, exception_id: int) -> Optional[AttendanceException]:
        raise NotImplementedError

    def get_exception_for_record(self, record_id: int) -> Optional[AttendanceException]:
        raise NotImplementedError

    def list_exceptions(
        self,
        *,
        status: Optional[ExceptionStatus] = None,
        member_id: Optional[int] = None,
    ) -> Sequence[AttendanceException]:
        """Exceptions ordered by ``work_date`` descending."""

        raise NotImplementedError

    def count_pending_exceptions(self, member_id: int, start_date: date, end_date: date) -> int:
        raise NotImplementedError

    def resolve_exception(
        self,
        *,
        exception_id: int,
        resolution_note: str,
        resolved_by: str,
        resolved_at: datetime,
    ) -> Optional[AttendanceException]:
        """Mark a PENDING exception on an unfrozen record as RESOLVED.

        Returns None when nothing matched (already resolved or frozen meanwhile).
        """

        raise NotImplementedError

    # -- freezes ------------------------------------------------------------

    def get_freeze(self, member_id: int, year: int, month: int) -> Optional[AttendanceFreeze]:
        raise NotImplementedError

    def freeze_month(
        self,
        *,
        member_id: int,
        year: int,
        month: int,
        frozen_by: str,
        frozen_at: datetime,
    ) -> AttendanceFreeze:
        """Insert the freeze row and flag every record of the month, atomically.

        Raises ``InvalidStateError`` if the month is already frozen or still has
        pending exceptions at write time.
        """

        raise NotImplementedError
