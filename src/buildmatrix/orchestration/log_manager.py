"""
Per-project log files.
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-6.6s] %(message)s"


class ProjectLogManager:
    """
    Attaches a file handler for the duration of one project's run.

    Everything logged below the ``buildmatrix`` logger while the manager is
    active is also written to ``<log_dir>/<type>/<name>.log``. Without a log
    directory the manager does nothing.

    Args:
        log_dir: Root of the per-project log files, or None
        project_type: Project category label
        project_name: Project name
    """

    def __init__(self, log_dir: Optional[Path], project_type: str, project_name: str,
                 logger_name: str = "buildmatrix"):
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.project_type = project_type
        self.project_name = project_name
        self.logger_name = logger_name
        self.handler: Optional[logging.FileHandler] = None

    @property
    def log_path(self) -> Optional[Path]:
        if self.log_dir is None:
            return None
        return self.log_dir / self.project_type / f"{self.project_name}.log"

    def __enter__(self) -> "ProjectLogManager":
        path = self.log_path
        if path is None:
            return self
        path.parent.mkdir(parents=True, exist_ok=True)
        self.handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        self.handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger(self.logger_name).addHandler(self.handler)
        logger.debug(f"Logging {self.project_name} to {path}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.handler is None:
            return
        logging.getLogger(self.logger_name).removeHandler(self.handler)
        self.handler.close()
        self.handler = None
