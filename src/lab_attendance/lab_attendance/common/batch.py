from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.enums import OutcomeStatus


@dataclass(frozen=True)
class BatchOutcome:
    """Result for one item (usually one member) of a batch operation."""

    key: Any
    status: OutcomeStatus
    detail: Any = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Aggregated outcome of a per-item isolated batch run."""

    results: list[BatchOutcome] = field(default_factory=list)
    exceptions: int = 0

    def add_success(self, key: Any, detail: Any = None) -> None:
        self.results.append(BatchOutcome(key=key, status=OutcomeStatus.SUCCESS, detail=detail))

    def add_skipped(self, key: Any, reason: str) -> None:
        self.results.append(BatchOutcome(key=key, status=OutcomeStatus.SKIPPED, detail=reason))

    def add_error(self, key: Any, error: str) -> None:
        self.results.append(BatchOutcome(key=key, status=OutcomeStatus.ERROR, error=error))

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success(self) -> int:
        return self._count(OutcomeStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def failures(self) -> int:
        return self._count(OutcomeStatus.ERROR)

    def summary(self) -> dict:
        return {
            "total": self.total,
            "success": self.success,
            "skipped": self.skipped,
            "failures": self.failures,
            "exceptions": self.exceptions,
        }
