from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class LabMember:
    """Domain entity: a lab member whose attendance is tracked.

    Note: plain data object, membership management lives outside this package.
    """

    member_id: int
    full_name: str
    biometric_user_id: str
    is_active: bool = True


@dataclass(frozen=True)
class PaymentBand:
    band_id: int
    name: str
    monthly_base_salary: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class PaymentBandAssignment:
    assignment_id: int
    member_id: int
    band: PaymentBand
    assigned_from: date
    assigned_to: Optional[date] = None
