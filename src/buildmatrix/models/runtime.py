"""
Runtime data models.

Values derived per invocation while a project is being built and tested:
variants, device targets, executables and the outcome of a supervised
command.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..validation.exceptions import CommandFailure, TransientInfrastructureFailure


@dataclass(frozen=True)
class BuildVariant:
    """One (toolchain, PIE-mode) combination subject to a full build."""

    toolchain: Optional[str]
    pie: bool

    @property
    def dirname(self) -> str:
        return "target+PIE" if self.pie else "target"

    def describe(self) -> str:
        """Suffix used in progress lines, e.g. `` clang3.6 +PIE``."""
        text = ""
        if self.toolchain is not None:
            text += f" {self.toolchain}"
        if self.pie:
            text += " +PIE"
        return text


@dataclass(frozen=True)
class DeviceTarget:
    """An ABI whose binaries were produced under a variant's output directory."""

    abi: str
    variant: BuildVariant
    libs_dir: Path


@dataclass
class Executable:
    """A built binary, with its optional per-binary runner options."""

    path: Path
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.path.name

    def to_list_line(self) -> str:
        """Line format of the runner's ``@file`` executable list."""
        line = str(self.path)
        if self.options:
            line += f" ADBRUNNER-OPTIONS:{json.dumps(self.options, separators=(',', ':'))}"
        return line


@dataclass
class CommandOutcome:
    """
    Result of one supervised command.

    ``transient_failure_detected`` records whether the directory-creation
    signature was observed on standard error (only when tracking was
    requested), independent of the exit status.
    """

    command: Union[str, Sequence[str]]
    return_code: int
    succeeded: bool
    transient_failure_detected: bool = False
    error_message: Optional[str] = None
    duration: float = 0.0
    event_count: int = 0

    def raise_for_status(self) -> None:
        """
        Raise the failure condition described by this outcome, if any.

        Raises:
            TransientInfrastructureFailure: Failed and the signature was seen
            CommandFailure: Failed for any other reason
        """
        if self.succeeded:
            return
        if self.transient_failure_detected:
            raise TransientInfrastructureFailure(
                self.error_message, command=self.command, return_code=self.return_code
            )
        raise CommandFailure(self.error_message, command=self.command, return_code=self.return_code)


def command_to_text(command: Union[str, Sequence[str]]) -> str:
    """Render a command for log lines and default error messages."""
    if isinstance(command, str):
        return command
    return " ".join(str(part) for part in command)


def split_executables(binaries: List[Path]) -> List[Path]:
    """Drop shared-library artifacts from a directory listing."""
    return [b for b in binaries if not b.name.endswith(".so")]
