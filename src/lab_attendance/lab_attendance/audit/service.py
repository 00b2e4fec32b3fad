from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import Any, Optional

from ..core.enums import ActorType
from .model import AuditEvent
from .repository import AuditSink

logger = logging.getLogger(__name__)


def snapshot(entity: Any) -> Optional[dict]:
    """Plain-dict view of a domain dataclass for before/after audit values."""
    if entity is None:
        return None
    if is_dataclass(entity):
        return asdict(entity)
    if isinstance(entity, dict):
        return dict(entity)
    raise TypeError(f"Cannot snapshot {type(entity)!r} for audit")


class AuditService:
    """Best-effort audit trail.

    Audit is observability, not a transactional participant: a failing sink is
    logged and never propagated to the caller's operation.
    """

    def __init__(self, sink: AuditSink):
        self._sink = sink

    def record(
        self,
        *,
        actor: Optional[str],
        action_type: str,
        entity_type: str,
        entity_id: Any,
        before: Any = None,
        after: Any = None,
    ) -> bool:
        try:
            event = AuditEvent(
                actor=actor,
                actor_type=ActorType.USER if actor else ActorType.SYSTEM,
                action_type=action_type,
                entity_type=entity_type,
                entity_id=str(entity_id),
                before=snapshot(before),
                after=snapshot(after),
            )
            self._sink.record(event)
        except Exception:
            logger.exception("Failed to record audit event %s on %s:%s", action_type, entity_type, entity_id)
            return False

        logger.debug("Audit event recorded: %s on %s:%s", action_type, entity_type, entity_id)
        return True
