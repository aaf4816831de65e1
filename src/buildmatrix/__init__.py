"""
buildmatrix: build-and-test orchestration for native projects.

A project is verified on the host, built once per build variant with the
NDK and, for device projects, tested on attached devices for every ABI the
build produced. Every external command runs under a supervisor that drains
its output, decodes structured progress events and retries transient
directory-creation failures.

The package is organized into specialized modules:
- config: Properties documents and run configuration
- models: Data structures and type definitions
- validation: Error taxonomy, validators and the retry strategy
- execution: Process supervision and the event line protocol
- system: Host platform and compiler detection
- orchestration: Projects, variants, phases and result sinks
- storage: Persistence of run results
- cli: Command-line interface

Usage:
    From command line:
        buildmatrix --ndk /path/to/ndk --type device tests/device/foo

    Programmatically:
        from buildmatrix import OrchestratorOptions, Project, TestOrchestrator
        project = Project(path, ndk, OrchestratorOptions(project_type="device"))
        TestOrchestrator(project).test()
"""

from .config import clear_config_cache, get_config, set_config_path
from .execution import EventProtocol, ProcessSupervisor
from .models import OrchestratorOptions, ProjectProperties, RunConfig
from .orchestration import Project, ResultSink, TestOrchestrator, VariantMatrix
from .validation import RetryScheduler

__version__ = "0.1.0"

__all__ = [
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "EventProtocol",
    "ProcessSupervisor",
    "OrchestratorOptions",
    "ProjectProperties",
    "RunConfig",
    "Project",
    "ResultSink",
    "TestOrchestrator",
    "VariantMatrix",
    "RetryScheduler",
    "__version__",
]
