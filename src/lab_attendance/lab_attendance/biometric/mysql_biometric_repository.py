from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import end_of_day, start_of_day
from ..core.enums import BiometricEventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import BiometricEvent
from .repository import BiometricEventRepository

_COLUMNS = "event_id, device_id, biometric_user_id, device_timestamp, server_received_at, event_type, raw_payload"


def _to_event(r: dict) -> BiometricEvent:
    return BiometricEvent(
        event_id=int(r["event_id"]),
        device_id=r["device_id"],
        biometric_user_id=str(r["biometric_user_id"]),
        device_timestamp=r["device_timestamp"],
        server_received_at=r["server_received_at"],
        event_type=BiometricEventType(r["event_type"]),
        raw_payload=load_json(r.get("raw_payload")) or {},
    )


class MySQLBiometricRepository(BiometricEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        device_id: str,
        biometric_user_id: str,
        device_timestamp: datetime,
        server_received_at: datetime,
        event_type: BiometricEventType,
        raw_payload: Optional[dict[str, Any]] = None,
    ) -> BiometricEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO biometric_logs(device_id, biometric_user_id, device_timestamp, server_received_at, event_type, raw_payload)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (device_id, biometric_user_id, device_timestamp, server_received_at, event_type.value, dump_json(raw_payload or {})),
            )
            event_id = int(cur.lastrowid)

        return BiometricEvent(
            event_id=event_id,
            device_id=device_id,
            biometric_user_id=biometric_user_id,
            device_timestamp=device_timestamp,
            server_received_at=server_received_at,
            event_type=event_type,
            raw_payload=dict(raw_payload or {}),
        )

    def get_logs_for_subject_on_date(self, biometric_user_id: str, day: date) -> Sequence[BiometricEvent]:
        return self.get_logs_in_range(start=start_of_day(day), end=end_of_day(day), biometric_user_id=biometric_user_id)

    def get_logs_in_range(
        self,
        *,
        start: datetime,
        end: datetime,
        biometric_user_id: Optional[str] = None,
    ) -> Sequence[BiometricEvent]:
        clauses = ["device_timestamp BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if biometric_user_id is not None:
            clauses.append("biometric_user_id=%s")
            params.append(str(biometric_user_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM biometric_logs
                WHERE {where}
                ORDER BY device_timestamp ASC, event_id ASC
                """,
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def get_recent(self, limit: int) -> Sequence[BiometricEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM biometric_logs
                ORDER BY server_received_at DESC, event_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_event(r) for r in fetchall(cur)]
