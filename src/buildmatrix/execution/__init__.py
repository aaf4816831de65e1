"""
Process execution for the orchestration engine.

This module provides the supervisor that runs external commands while
concurrently draining their output, the line protocol for structured events
embedded in that output, and notice-level logging with its liveness clock.
"""

from .event_protocol import DEFAULT_PREFIX_STEM, EventProtocol, LineKind, ParsedLine
from .notice import NOTICE, NoticeClock, NoticeLogger, format_elapsed
from .process_tree import terminate_process_tree
from .supervisor import TRANSIENT_FAILURE_MARKER, ProcessSupervisor

__all__ = [
    "DEFAULT_PREFIX_STEM",
    "EventProtocol",
    "LineKind",
    "ParsedLine",
    "NOTICE",
    "NoticeClock",
    "NoticeLogger",
    "format_elapsed",
    "terminate_process_tree",
    "TRANSIENT_FAILURE_MARKER",
    "ProcessSupervisor",
]
