"""
Collaborators shared by the phases of one project run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from ..execution import NoticeLogger, ProcessSupervisor
from ..validation import ErrorSeverity, RetryScheduler, handle_error
from .project import Project
from .result_sink import NullResultSink, ResultSink


@dataclass
class PhaseContext:
    project: Project
    supervisor: ProcessSupervisor
    notices: NoticeLogger
    sink: ResultSink = field(default_factory=NullResultSink)
    retry: RetryScheduler = field(default_factory=RetryScheduler)

    @property
    def logger(self) -> logging.Logger:
        return self.notices.logger

    @property
    def cancel_event(self):
        return self.project.options.cancel_event

    def emit(self, record: Dict[str, Any]) -> None:
        """Hand ``record`` to the sink; sink errors are logged and dropped."""
        try:
            self.sink.emit(record)
        except Exception as e:
            handle_error(e, f"recording '{record.get('event')}' of {self.project.name}",
                         severity=ErrorSeverity.WARNING, reraise=False, logger=self.logger)
