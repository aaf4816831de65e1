"""
Data models for the orchestration engine.

Configuration Models:
- Project properties loaded from the properties document
- Run-wide configuration and per-run injected options

Runtime Models:
- Build variants, device targets and executables
- Outcomes of supervised commands

Event and Result Models:
- Structured progress events decoded from process output
- Tri-state phase results (skipped, succeeded, failed)
"""

from .config import OrchestratorOptions, ProjectProperties, RunConfig
from .events import EventKind, ProgressEvent
from .results import PhaseResult, PhaseStatus
from .runtime import (
    BuildVariant,
    CommandOutcome,
    DeviceTarget,
    Executable,
    command_to_text,
    split_executables,
)

__all__ = [
    # Configuration
    "OrchestratorOptions",
    "ProjectProperties",
    "RunConfig",
    # Events
    "EventKind",
    "ProgressEvent",
    # Results
    "PhaseResult",
    "PhaseStatus",
    # Runtime
    "BuildVariant",
    "CommandOutcome",
    "DeviceTarget",
    "Executable",
    "command_to_text",
    "split_executables",
]
