from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import ActorType


@dataclass(frozen=True)
class AuditEvent:
    actor: Optional[str]
    actor_type: ActorType
    action_type: str
    entity_type: str
    entity_id: str
    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
