"""
Configuration data models.

This module contains the typed configuration structures: per-project
properties loaded from the project's properties document, the run-wide
configuration loaded from ``buildmatrix.toml`` and the options injected into
each orchestration run.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..validation.strategies import DEFAULT_MAX_ATTEMPTS


@dataclass(frozen=True)
class ProjectProperties:
    """
    Properties of a single project, loaded from ``properties.json`` or
    ``properties.toml`` in the project root. A missing document yields the
    defaults below.
    """

    # Never build or test this project.
    broken: bool = False
    # Long-running project, only tested in full-testing mode or when named.
    long: bool = False
    # Toolchain families ("gcc", "clang") the project cannot be built with.
    broken_toolchain_types: List[str] = field(default_factory=list)
    # Exact toolchain versions ("clang3.6", "4.9") the project cannot be built with.
    broken_toolchain_versions: List[str] = field(default_factory=list)
    # Executable names that are built but must not be run on devices.
    broken_run: List[str] = field(default_factory=list)
    # Host platform patterns on which on-host verification is skipped.
    onhost_disabled_os: List[str] = field(default_factory=list)
    # Host compilers that are never used for on-host verification.
    onhost_disabled_cc: List[str] = field(default_factory=list)
    # Per-executable timeout override for device runs, in seconds.
    single_run_timeout: Optional[int] = None
    # Executable name -> option object handed to the device-test runner.
    adbrunner_options: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class RunConfig:
    """
    Run-wide settings, loaded from the ``[run]`` table of ``buildmatrix.toml``.
    """

    jobs: int
    single_run_timeout: int = 600
    device_path: str = "/data/local/tmp/ndk-tests"
    keep_going: bool = False
    full_testing: bool = False
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    watchdog_interval: float = 5.0
    notice_quiet_period: float = 30.0
    outdir: Path = Path("/tmp/buildmatrix")


@dataclass
class OrchestratorOptions:
    """
    Options injected into a single project's orchestration run.
    """

    # Category label; "device" projects get device testing.
    project_type: str = "unknown"
    # Root of all working directories.
    outdir: Path = Path("/tmp/buildmatrix")
    jobs: int = 1
    adb: Optional[str] = None
    # e.g. "4.9", "5", "clang3.6"; None means the NDK default toolchain.
    toolchain_version: Optional[str] = None
    # Explicit PIE request; None lets the variant matrix decide.
    pie: Optional[bool] = None
    # Explicit ABI allow-list; None allows every ABI that was built.
    abis: Optional[List[str]] = None
    emulator_tag: Optional[str] = None
    single_run_timeout: int = 600
    keep_going: bool = False
    full_testing: bool = False
    # Projects explicitly named by the caller (long projects run when named).
    tests: Optional[List[str]] = None
    device_path: str = "/data/local/tmp/ndk-tests"
    # Command prefix of the device-test runner; None means "ruby <ndk>/tools/adbrunner".
    device_runner: Optional[List[str]] = None
    disable_onhost_testing: bool = False
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    watchdog_interval: float = 5.0
    notice_quiet_period: float = 30.0
    # Set to request termination of the running command.
    cancel_event: Optional[threading.Event] = None
