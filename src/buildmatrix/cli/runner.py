"""
Sequential orchestration of the projects named on the command line.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..execution import NoticeClock
from ..models.config import OrchestratorOptions
from ..orchestration import (
    MultiResultSink,
    Project,
    ProjectLogManager,
    RecordingResultSink,
    ResultSink,
    TestOrchestrator,
)
from ..storage import storage_for_path
from ..validation import CommandCancelled, ConfigurationError, ErrorSeverity, OrchestrationError, TestingFailed, handle_error

logger = logging.getLogger(__name__)

PASSED = "passed"
SKIPPED = "skipped"
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass
class ProjectStatus:
    """Final status of one project of the run."""

    name: str
    path: str
    status: str
    reason: Optional[str] = None
    failure_count: int = 0


class RunCoordinator:
    """
    Runs each project through its :class:`TestOrchestrator`, one at a time.

    Args:
        ndk: NDK root passed to every project
        options: Options shared by all projects
        sink: Additional sink receiving every record
        log_dir: Root of per-project log files, or None
    """

    def __init__(self, ndk: Path, options: OrchestratorOptions,
                 sink: Optional[ResultSink] = None, log_dir: Optional[Path] = None):
        self.ndk = Path(ndk)
        self.options = options
        if self.options.cancel_event is None:
            self.options = dataclasses.replace(options, cancel_event=threading.Event())
        self.recorder = RecordingResultSink()
        self.sink = MultiResultSink(self.recorder, sink) if sink is not None else self.recorder
        self.log_dir = log_dir
        self.statuses: List[ProjectStatus] = []

    @property
    def cancel_event(self) -> threading.Event:
        return self.options.cancel_event

    def request_shutdown(self) -> None:
        self.cancel_event.set()

    def run(self, paths: Iterable[Path]) -> List[ProjectStatus]:
        for path in paths:
            if self.cancel_event.is_set():
                logger.warning("Shutdown requested, skipping further projects.")
                break
            self.statuses.append(self.run_project(Path(path)))
        return self.statuses

    def run_project(self, path: Path) -> ProjectStatus:
        name = path.name
        with ProjectLogManager(self.log_dir, self.options.project_type, name):
            try:
                project = Project(path, self.ndk, self.options)
                result = TestOrchestrator(project, sink=self.sink, notice_clock=NoticeClock()).test()
            except TestingFailed as e:
                return ProjectStatus(name, str(path), FAILED, str(e), e.failure_count)
            except CommandCancelled as e:
                return ProjectStatus(name, str(path), CANCELLED, str(e))
            except ConfigurationError as e:
                handle_error(e, f"project {name}", reraise=False, logger=logger)
                return ProjectStatus(name, str(path), FAILED, str(e), 1)
            except (OrchestrationError, OSError) as e:
                handle_error(e, f"project {name}", severity=ErrorSeverity.DEBUG, reraise=False, logger=logger)
                return ProjectStatus(name, str(path), FAILED, str(e), 1)

        if result.is_skipped:
            return ProjectStatus(name, str(path), SKIPPED, result.reason)
        return ProjectStatus(name, str(path), PASSED)

    @property
    def succeeded(self) -> bool:
        return all(s.status in (PASSED, SKIPPED) for s in self.statuses)

    def summary(self) -> Dict[str, Any]:
        counts: Dict[str, int] = {}
        for status in self.statuses:
            counts[status.status] = counts.get(status.status, 0) + 1
        return {
            "ndk": str(self.ndk),
            "type": self.options.project_type,
            "toolchain_version": self.options.toolchain_version,
            "counts": counts,
            "projects": [dataclasses.asdict(s) for s in self.statuses],
        }

    def write_summary(self, path: Path) -> None:
        """
        Persist the sink records to ``path`` (Parquet for ``.parquet``, JSON
        otherwise) and the per-project statuses next to it.
        """
        path = Path(path)
        storage = storage_for_path(path)
        storage.save_records(self.recorder.to_dataframe(), str(path))
        storage.save_summary(self.summary(), str(path.with_name(f"{path.stem}-summary.json")))
        logger.info(f"Run summary written to {path}")
