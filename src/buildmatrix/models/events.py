"""
Structured progress events emitted by supervised processes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventKind(str, Enum):
    """Discriminator values of the ``"event"`` field."""

    SKIP = "skip"
    RUN = "run"
    FAIL = "fail"
    PAUSE = "pause"
    TIMEOUT = "timeout"
    BUILD_RESULT = "build-result"
    TEST_RESULT = "test-result"


@dataclass
class ProgressEvent:
    """
    A decoded event record.

    ``kind`` keeps the raw discriminator string so that kinds unknown to this
    version still reach the caller; compare it against :class:`EventKind`.
    """

    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Any) -> "ProgressEvent":
        """
        Build an event from a decoded JSON value.

        Raises:
            ValueError: If the record is not an object
        """
        if not isinstance(record, dict):
            raise ValueError(f"event record must be an object, got {type(record).__name__}")
        return cls(kind=str(record.get("event", "")), payload=record)

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        try:
            return int(self.payload.get(key, default))
        except (TypeError, ValueError):
            return default

    @property
    def known_kind(self) -> Optional[EventKind]:
        try:
            return EventKind(self.kind)
        except ValueError:
            return None
