"""
Orchestration of project builds and tests.

This module provides the project model, the variant matrix, the host, build
and device-test phases, the per-project state machine that drives them and
the sinks receiving build and test records.
"""

from .build_phase import TargetBuilder
from .context import PhaseContext
from .device_phase import DeviceTestDispatcher, EventTranslator, format_counter
from .host_phase import HostVerifier
from .log_manager import ProjectLogManager
from .project import Project
from .result_sink import (
    BUILD_FAILED,
    BUILD_SUCCESS,
    TEST_FAILED,
    TEST_SUCCESS,
    MultiResultSink,
    NullResultSink,
    RecordingResultSink,
    ResultSink,
    StreamResultSink,
)
from .test_orchestrator import OrchestratorState, TestOrchestrator
from .variant_matrix import (
    DEVICE_PROJECT_TYPE,
    KNOWN_ABIS,
    VariantMatrix,
    abi_allowed,
    enumerate_abis,
    enumerate_pie_flags,
)

__all__ = [
    "TargetBuilder",
    "PhaseContext",
    "DeviceTestDispatcher",
    "EventTranslator",
    "format_counter",
    "HostVerifier",
    "ProjectLogManager",
    "Project",
    "BUILD_FAILED",
    "BUILD_SUCCESS",
    "TEST_FAILED",
    "TEST_SUCCESS",
    "MultiResultSink",
    "NullResultSink",
    "RecordingResultSink",
    "ResultSink",
    "StreamResultSink",
    "OrchestratorState",
    "TestOrchestrator",
    "DEVICE_PROJECT_TYPE",
    "KNOWN_ABIS",
    "VariantMatrix",
    "abi_allowed",
    "enumerate_abis",
    "enumerate_pie_flags",
]
