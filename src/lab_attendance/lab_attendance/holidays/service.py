from __future__ import annotations

from datetime import date
from typing import Optional

from ..common.cache import LookupCache
from .repository import HolidayCalendar, HolidayRepository


class CachedHolidayCalendar(HolidayCalendar):
    """Holiday lookups memoised per date; call ``invalidate()`` after calendar writes."""

    def __init__(self, holidays: HolidayRepository, *, cache: Optional[LookupCache[date, bool]] = None):
        self._holidays = holidays
        self._cache = cache if cache is not None else LookupCache()

    def is_holiday(self, day: date) -> bool:
        return self._cache.get_or_load(day, self._holidays.exists_on)

    def invalidate(self) -> None:
        self._cache.invalidate()
