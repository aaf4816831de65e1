"""
Line protocol for structured events mixed into process output.

A supervised process prints free-form text, plus lines starting with a
per-invocation random prefix followed by a JSON object. Only lines carrying
the exact prefix are decoded; everything else is plain log text.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.events import ProgressEvent

logger = logging.getLogger(__name__)

DEFAULT_PREFIX_STEM = "BUILDMATRIX-MRO-"


class LineKind(Enum):
    TEXT = "text"
    EVENT = "event"
    MALFORMED = "malformed"


@dataclass
class ParsedLine:
    kind: LineKind
    text: str
    event: Optional[ProgressEvent] = None


class EventProtocol:
    """
    Classifies output lines of one supervised invocation.

    Args:
        prefix: Event-line prefix; a fresh random one is generated when omitted
    """

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or self.generate_prefix()

    @staticmethod
    def generate_prefix(stem: str = DEFAULT_PREFIX_STEM) -> str:
        """Return a prefix that is unique per call, e.g. ``BUILDMATRIX-MRO-3f2a...``."""
        return f"{stem}{uuid.uuid4().hex}"

    def parse(self, line: str) -> ParsedLine:
        """
        Classify one line (without its trailing newline).

        Malformed event payloads are reported with a single warning and
        yield no event.
        """
        if not line.startswith(self.prefix):
            return ParsedLine(LineKind.TEXT, line)

        payload = line[len(self.prefix):]
        try:
            event = ProgressEvent.from_record(json.loads(payload))
        except ValueError:
            logger.warning(f"Can't handle event output: {payload}")
            return ParsedLine(LineKind.MALFORMED, line)
        return ParsedLine(LineKind.EVENT, line, event)

    def encode(self, record: dict) -> str:
        """Render a record as an event line carrying this protocol's prefix."""
        return f"{self.prefix}{json.dumps(record, separators=(',', ':'))}"
