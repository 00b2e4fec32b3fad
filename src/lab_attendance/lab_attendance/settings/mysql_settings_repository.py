from __future__ import annotations

from typing import Mapping

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load_current(self) -> Mapping[str, str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT setting_key, setting_value
                FROM system_settings
                WHERE effective_to IS NULL
                ORDER BY created_at ASC
                """
            )
            # Later versions win if a key was ever left open twice.
            return {r["setting_key"]: str(r["setting_value"]) for r in fetchall(cur)}
