from __future__ import annotations

from datetime import date
from typing import Protocol


class HolidayRepository(Protocol):
    def exists_on(self, day: date) -> bool:
        raise NotImplementedError


class HolidayCalendar(Protocol):
    """What derivation needs from the holiday calendar."""

    def is_holiday(self, day: date) -> bool:
        raise NotImplementedError
