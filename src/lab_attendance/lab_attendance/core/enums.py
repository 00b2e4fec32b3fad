from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Daily attendance classification stored on an attendance record."""

    FULL_DAY = "FULL_DAY"
    HALF_DAY = "HALF_DAY"
    LOP = "LOP"
    HOLIDAY = "HOLIDAY"
    CASUAL_LEAVE_FULL = "CASUAL_LEAVE_FULL"
    CASUAL_LEAVE_HALF = "CASUAL_LEAVE_HALF"
    PENDING_EXCEPTION = "PENDING_EXCEPTION"


class AttendanceSource(str, Enum):
    """Where the current classification of a record came from."""

    BIOMETRIC = "BIOMETRIC"
    MANUAL = "MANUAL"
    HOLIDAY = "HOLIDAY"
    LEAVE_OVERRIDE = "LEAVE_OVERRIDE"


class BiometricEventType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    UNKNOWN = "UNKNOWN"


class ExceptionType(str, Enum):
    MISSING_DATA = "MISSING_DATA"
    INCONSISTENT_LOGS = "INCONSISTENT_LOGS"


class ExceptionStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class AdjustmentType(str, Enum):
    BONUS = "BONUS"
    DEDUCTION = "DEDUCTION"
    CORRECTION = "CORRECTION"


class CalculationMethod(str, Enum):
    MONTHLY_PRO_RATA = "monthly_pro_rata"
    HOURLY_RATE = "hourly_rate"


class ActorType(str, Enum):
    USER = "USER"
    SYSTEM = "SYSTEM"


class OutcomeStatus(str, Enum):
    """Per-item result of a batch run."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"
