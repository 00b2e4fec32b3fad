from __future__ import annotations

from typing import Protocol

from .model import AuditEvent


class AuditSink(Protocol):
    """Append-only destination for audit events (persistence lives elsewhere)."""

    def record(self, event: AuditEvent) -> None:
        raise NotImplementedError
