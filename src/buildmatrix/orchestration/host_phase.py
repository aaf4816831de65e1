"""
On-host verification.

A project shipping ``host/GNUmakefile`` or ``CMakeLists.txt`` is built and
tested on the host with every distinct host compiler before any target
build, so that errors which are not specific to the target surface early.
"""

import os
import re
import shutil
import sys
from typing import List, Optional

from ..models.results import PhaseResult
from ..system import HostCompiler, discover_host_compilers, supports_onhost_testing
from ..validation import CommandCancelled, ConfigurationError, handle_error
from .context import PhaseContext
from .result_sink import BUILD_FAILED
from .scripts import host_cmakelists, host_run_script, write_script

ONHOST_DISABLE_ENV_VAR = "DISABLE_ONHOST_TESTING"


class HostVerifier:
    """
    Runs the host phase of one project.

    Args:
        context: Collaborators of the project run
        platform: Host platform string matched against ``onhost-disabled-os``
    """

    def __init__(self, context: PhaseContext, platform: str = sys.platform):
        self.context = context
        self.platform = platform

    def skip_reason(self) -> Optional[str]:
        """Why the host phase does not apply, or None when it does."""
        project = self.context.project
        if not supports_onhost_testing():
            return "on-host testing is not supported on this host"
        if not project.has_host_makefile() and not project.has_cmakelists():
            return "no on-host test descriptor"
        if project.options.disable_onhost_testing or os.environ.get(ONHOST_DISABLE_ENV_VAR) == "yes":
            return "on-host testing disabled"
        for pattern in project.properties.onhost_disabled_os:
            try:
                matched = re.search(pattern, self.platform)
            except re.error as e:
                raise ConfigurationError(f"Invalid onhost-disabled-os pattern {pattern!r}: {e}") from e
            if matched:
                return f"on-host testing disabled for {self.platform}"
        return None

    def compilers(self) -> List[HostCompiler]:
        project = self.context.project
        found = discover_host_compilers(project.options.toolchain_version)
        disabled = set(project.properties.onhost_disabled_cc)
        return [c for c in found if c.exe not in disabled]

    def run(self) -> PhaseResult:
        """
        Build and run the on-host test with every host compiler.

        Returns:
            Skipped when the project has no host-capable descriptor or host
            testing is disabled, succeeded otherwise

        Raises:
            OrchestrationError: Any failure; always terminal for the project
        """
        reason = self.skip_reason()
        if reason is not None:
            self.context.logger.debug(f"Host phase of {self.context.project.name} skipped: {reason}")
            return PhaseResult.skipped(reason)

        project = self.context.project
        notices = self.context.notices
        notices.notice(f"HST {project.label()}")
        try:
            for compiler in self.compilers():
                self._run_with(compiler.exe)
            notices.info("== OK: all on-host tests PASSED")
        except CommandCancelled:
            raise
        except Exception as e:
            handle_error(e, f"on-host testing of {project.name}", reraise=False, logger=self.context.logger)
            notices.notice(f"   ---> FAILURE: HOST TEST    [{project.name}]")
            self.context.emit({"event": BUILD_FAILED, "path": str(project.path)})
            raise
        return PhaseResult.succeeded()

    def _run_with(self, cc: str) -> None:
        project = self.context.project
        workdir = project.tmpdir / f"host-{cc}"

        def attempt():
            self._prepare(workdir, cc)
            outcome = self.context.supervisor.run(
                [str(workdir / "run.sh")],
                cwd=workdir,
                errmsg=f"On-host test of {project.name} failed",
                track_transient_failures=True,
                cancel_event=self.context.cancel_event,
            )
            outcome.raise_for_status()

        self.context.retry.run(attempt, "On-host testing", project.name)
        shutil.rmtree(workdir, ignore_errors=True)

    def _prepare(self, workdir, cc: str) -> None:
        project = self.context.project
        project.recreate_copy(workdir)
        use_cmake = project.has_cmakelists()
        if use_cmake:
            original = (project.path / "CMakeLists.txt").read_text(encoding="utf-8")
            (workdir / "CMakeLists.txt").write_text(host_cmakelists(original), encoding="utf-8")
        script = host_run_script(
            workdir,
            cc=cc,
            gnumake=project.gnumake,
            jobs=project.options.jobs,
            use_cmake=use_cmake,
            use_host_makefile=project.has_host_makefile(),
        )
        write_script(workdir / "run.sh", script)
