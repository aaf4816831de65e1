"""
Pytest configuration and shared fixtures for the buildmatrix test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the buildmatrix project.
"""

import json
import shutil
import stat
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from buildmatrix.models.config import OrchestratorOptions  # noqa: E402
from buildmatrix.models.runtime import CommandOutcome  # noqa: E402
from buildmatrix.orchestration import RecordingResultSink  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


def make_executable(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_ndk(temp_dir):
    """An NDK tree with a no-op ndk-build and a prebuilt make for this host."""
    from buildmatrix.system import host_tags

    ndk = temp_dir / "ndk"
    make_executable(ndk / "ndk-build", "#!/bin/sh\nexit 0\n")
    for tag in host_tags():
        make_executable(ndk / "prebuilt" / tag / "bin" / "make", "#!/bin/sh\nexit 0\n")
    return ndk


@pytest.fixture
def project_factory(temp_dir):
    """Create project directories with an optional properties document."""

    def create(name: str = "sample", properties: Optional[Dict[str, Any]] = None,
               files: Optional[Dict[str, str]] = None, parent: str = "projects") -> Path:
        path = temp_dir / parent / name
        path.mkdir(parents=True, exist_ok=True)
        if properties is not None:
            (path / "properties.json").write_text(json.dumps(properties))
        for relpath, content in (files or {}).items():
            target = path / relpath
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return path

    return create


@pytest.fixture
def options_factory(temp_dir):
    """OrchestratorOptions rooted in the temporary directory."""

    def create(**overrides) -> OrchestratorOptions:
        values = dict(
            project_type="device",
            outdir=temp_dir / "out",
            jobs=2,
            disable_onhost_testing=True,
            watchdog_interval=0.05,
            notice_quiet_period=60.0,
        )
        values.update(overrides)
        return OrchestratorOptions(**values)

    return create


@pytest.fixture
def recording_sink():
    return RecordingResultSink()


# ============================================================================
# Fake supervisor
# ============================================================================


class FakeSupervisor:
    """
    Stand-in for ProcessSupervisor that records invocations.

    ``handler(call)`` decides the outcome of each call; ``call`` is a dict
    with the command, its keyword arguments and the event callback. The
    handler returns a return code (0 by default) and may set
    ``call["stderr"]`` to mark a transient failure.
    """

    def __init__(self, handler: Optional[Callable[[Dict[str, Any]], Optional[int]]] = None):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []

    def run(self, command, env=None, on_event=None, **kwargs) -> CommandOutcome:
        call = dict(command=command, env=env or {}, on_event=on_event, **kwargs)
        self.calls.append(call)
        rc = self.handler(call) if self.handler is not None else 0
        rc = rc or 0
        transient = bool(kwargs.get("track_transient_failures")) and any(
            line.startswith("mkdir:") for line in call.get("stderr", [])
        )
        return CommandOutcome(
            command=command,
            return_code=rc,
            succeeded=rc == 0,
            transient_failure_detected=transient,
            error_message=None if rc == 0 else kwargs.get("errmsg", "failed"),
        )

    def commands(self) -> List[str]:
        return [c["command"][0] if isinstance(c["command"], list) else c["command"] for c in self.calls]


@pytest.fixture
def fake_supervisor_class():
    return FakeSupervisor


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from buildmatrix.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(None)

