"""
A project under test: its identity, properties and working directories.
"""

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Optional

from ..config import load_project_properties
from ..models.config import OrchestratorOptions, ProjectProperties
from ..models.runtime import BuildVariant
from ..system import IS_WINDOWS, find_gnumake
from ..validation import ConfigurationError
from .variant_matrix import DEVICE_PROJECT_TYPE

logger = logging.getLogger(__name__)


class Project:
    """
    One project directory, constructed once per orchestration run.

    Args:
        path: Project root directory
        ndk: NDK root; must contain an executable ``ndk-build``
        options: Options injected for this run
        properties: Pre-loaded properties; read from the project root if omitted

    Raises:
        ConfigurationError: If the project directory or ndk-build is missing,
            or the properties document is invalid
    """

    def __init__(self, path: Path, ndk: Path, options: OrchestratorOptions,
                 properties: Optional[ProjectProperties] = None):
        self.path = Path(path)
        if not self.path.is_dir():
            raise ConfigurationError(f"No such directory: {self.path}")

        self.ndk = Path(ndk)
        self.ndkbuild = self.ndk / ("ndk-build.cmd" if IS_WINDOWS else "ndk-build")
        if not is_runnable(self.ndkbuild):
            raise ConfigurationError(f"Wrong NDK path: {self.ndk}")

        self.name = self.path.name
        self.options = options
        self.type = options.project_type
        self.tmpdir = Path(options.outdir) / self.type / self.name
        self.properties = properties if properties is not None else load_project_properties(self.path)
        self.single_run_timeout = self.properties.single_run_timeout or options.single_run_timeout
        self._gnumake: Optional[Path] = None

    @property
    def display_type(self) -> str:
        if self.type == "samples":
            return "sample"
        return f"{self.type} test"

    @property
    def is_device_project(self) -> bool:
        return self.type == DEVICE_PROJECT_TYPE

    @property
    def gnumake(self) -> Path:
        """The NDK's prebuilt make, looked up on first use."""
        if self._gnumake is None:
            self._gnumake = find_gnumake(self.ndk)
        return self._gnumake

    def label(self, variant: Optional[BuildVariant] = None) -> str:
        """Progress-line label, e.g. ``device test [foo] clang3.6 +PIE``."""
        suffix = variant.describe() if variant is not None else ""
        return f"{self.display_type} [{self.name}]{suffix}"

    def variant_dir(self, variant: BuildVariant) -> Path:
        return self.tmpdir / variant.dirname

    def has_build_script(self) -> bool:
        return is_runnable(self.path / "build.sh")

    def has_cmakelists(self) -> bool:
        return (self.path / "CMakeLists.txt").is_file()

    def has_host_makefile(self) -> bool:
        return (self.path / "host" / "GNUmakefile").is_file()

    def broken_toolchain(self) -> bool:
        """
        Whether the project must not be built with the active toolchain.

        True when marked broken unconditionally, when the toolchain's family
        prefix (``clang`` in ``clang3.6``) is listed under
        ``broken-toolchain-type``, or when the exact version is listed under
        ``broken-toolchain-version``.
        """
        if self.properties.broken:
            return True

        version = self.options.toolchain_version
        if version is None:
            return False

        match = re.match(r"^([^\d-]+)", version)
        if match and match.group(1) in self.properties.broken_toolchain_types:
            return True
        return version in self.properties.broken_toolchain_versions

    def is_long(self) -> bool:
        return self.properties.long

    def recreate_copy(self, destination: Path) -> None:
        """Replace ``destination`` with a fresh copy of the project tree."""
        shutil.rmtree(destination, ignore_errors=True)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(self.path, destination, symlinks=True)
        logger.debug(f"Copied {self.path} to {destination}")

    def cleanup(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)


def is_runnable(path: Path) -> bool:
    if IS_WINDOWS:
        return path.is_file()
    return path.is_file() and os.access(path, os.X_OK)
