from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import LabMember, PaymentBandAssignment


class MemberRepository(Protocol):
    """Repository interface for lab members and their pay assignments.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, member_id: int) -> Optional[LabMember]:
        raise NotImplementedError

    def list_active(self) -> Sequence[LabMember]:
        raise NotImplementedError

    def get_current_payment_band(self, member_id: int) -> Optional[PaymentBandAssignment]:
        """The assignment with no ``assigned_to`` end date."""

        raise NotImplementedError
