from __future__ import annotations

from ..core.enums import AttendanceStatus


def paid_day_weight(status: AttendanceStatus) -> float:
    """Paid-day fraction of one attendance status.

    Every member of the enum is handled explicitly; a new status raises until it
    is added here.
    """
    if status in (AttendanceStatus.FULL_DAY, AttendanceStatus.CASUAL_LEAVE_FULL, AttendanceStatus.HOLIDAY):
        return 1.0
    if status in (AttendanceStatus.HALF_DAY, AttendanceStatus.CASUAL_LEAVE_HALF):
        return 0.5
    if status == AttendanceStatus.LOP:
        return 0.0
    if status == AttendanceStatus.PENDING_EXCEPTION:
        # Resolution is a sign-off only, so a resolved day can be frozen in this state.
        return 0.0
    raise ValueError(f"Unhandled attendance status: {status!r}")
