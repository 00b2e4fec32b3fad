from __future__ import annotations

from typing import Mapping, Optional, Protocol


class SettingsRepository(Protocol):
    def load_current(self) -> Mapping[str, str]:
        """All settings versions that are still in effect, keyed by setting key."""

        raise NotImplementedError


class SettingsProvider(Protocol):
    def get_setting(self, key: str) -> Optional[str]:
        raise NotImplementedError
