from __future__ import annotations

import logging
from typing import Optional

from ..common.cache import LookupCache
from .repository import SettingsProvider, SettingsRepository

logger = logging.getLogger(__name__)


class CachedSettings(SettingsProvider):
    """Settings read through a cache that is loaded wholesale on first use.

    A key still absent after a refresh is reported as ``None`` until the next
    ``invalidate()``; callers fall back to their defaults.
    """

    def __init__(self, settings: SettingsRepository, *, cache: Optional[LookupCache[str, str]] = None):
        self._settings = settings
        self._cache = cache if cache is not None else LookupCache()
        self._loaded = False

    def refresh(self) -> None:
        self._cache.replace_all(dict(self._settings.load_current()))
        self._loaded = True
        logger.debug("Settings cache refreshed (%s keys)", len(self._cache))

    def get_setting(self, key: str) -> Optional[str]:
        if not self._loaded:
            self.refresh()
        return self._cache.get(key)

    def invalidate(self) -> None:
        self._cache.invalidate()
        self._loaded = False


def get_float_setting(settings: SettingsProvider, key: str, default: float) -> float:
    """Read a numeric setting, falling back to ``default`` when absent or unparsable."""
    raw = settings.get_setting(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Setting %s=%r is not a number, using default %s", key, raw, default)
        return default
