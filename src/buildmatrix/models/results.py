"""
Phase and project result models.

Skips and successes are ordinary return values; only failures propagate as
exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PhaseStatus(Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PhaseResult:
    """Outcome of one orchestration phase or of a whole project run."""

    status: PhaseStatus
    reason: Optional[str] = None

    @classmethod
    def skipped(cls, reason: str) -> "PhaseResult":
        return cls(PhaseStatus.SKIPPED, reason)

    @classmethod
    def succeeded(cls) -> "PhaseResult":
        return cls(PhaseStatus.SUCCEEDED)

    @classmethod
    def failed(cls, reason: str) -> "PhaseResult":
        return cls(PhaseStatus.FAILED, reason)

    @property
    def is_skipped(self) -> bool:
        return self.status is PhaseStatus.SKIPPED
