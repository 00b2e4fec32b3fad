from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json
from .model import AuditEvent
from .repository import AuditSink


class MySQLAuditRepository(AuditSink):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, event: AuditEvent) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(actor, actor_type, action_type, entity_type, entity_id, before_value, after_value)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.actor,
                    event.actor_type.value,
                    event.action_type,
                    event.entity_type,
                    event.entity_id,
                    dump_json(event.before),
                    dump_json(event.after),
                ),
            )
