"""
Target builds, one per build variant.
"""

import os
from pathlib import Path
from typing import Dict, List

from ..models.results import PhaseResult
from ..models.runtime import BuildVariant
from ..system import IS_WINDOWS
from ..validation import CommandCancelled, ConfigurationError, handle_error
from .context import PhaseContext
from .project import is_runnable
from .result_sink import BUILD_FAILED, BUILD_SUCCESS
from .scripts import target_build_script, target_cmakelists, write_script


class TargetBuilder:
    """
    Builds a project for one variant into ``<tmpdir>/target[+PIE]``.

    Every attempt starts from a fresh copy of the project, so the working
    directory content after a build does not depend on earlier builds.
    """

    def __init__(self, context: PhaseContext, cmake: str = "cmake"):
        self.context = context
        self.cmake = cmake

    def build(self, variant: BuildVariant) -> PhaseResult:
        """
        Build ``variant``, retrying on transient failures.

        Raises:
            CommandFailure: The build driver failed
            RetryExhausted: Every attempt hit a transient failure
            ConfigurationError: No build driver could be found
        """
        project = self.context.project
        notices = self.context.notices
        notices.notice(f"BLD {project.label(variant)}")
        dstdir = project.variant_dir(variant)
        record = {"path": str(project.path), "pie": variant.pie}
        try:
            self.context.retry.run(lambda: self._attempt(variant, dstdir), "Build", project.name)
        except CommandCancelled:
            raise
        except Exception as e:
            handle_error(e, f"build of {project.name}", reraise=False, logger=self.context.logger)
            notices.notice(f"   ---> FAILURE: TARGET BUILD [{project.name}]")
            self.context.emit({"event": BUILD_FAILED, **record})
            raise
        self.context.emit({"event": BUILD_SUCCESS, **record})
        return PhaseResult.succeeded()

    def _attempt(self, variant: BuildVariant, dstdir: Path) -> None:
        project = self.context.project
        self.prepare(variant, dstdir)
        env = self.build_env(variant)
        outcome = self.context.supervisor.run(
            self.build_command(dstdir, env),
            env=env,
            cwd=dstdir,
            errmsg=f"Build of project {project.name} failed",
            track_transient_failures=True,
            cancel_event=self.context.cancel_event,
        )
        outcome.raise_for_status()

    def prepare(self, variant: BuildVariant, dstdir: Path) -> None:
        """Copy the project into ``dstdir`` and generate CMake glue if needed."""
        project = self.context.project
        project.recreate_copy(dstdir)
        if not project.has_cmakelists() or project.has_build_script():
            return

        original = (project.path / "CMakeLists.txt").read_text(encoding="utf-8")
        (dstdir / "CMakeLists.txt").write_text(target_cmakelists(original), encoding="utf-8")
        script = target_build_script(
            dstdir,
            ndk=project.ndk,
            gnumake=project.gnumake,
            jobs=project.options.jobs,
            toolchain_version=project.options.toolchain_version,
            pie=variant.pie,
            cmake=self.cmake,
        )
        write_script(dstdir / "build.sh", script)

    def build_env(self, variant: BuildVariant) -> Dict[str, str]:
        project = self.context.project
        return {
            "V": "1",
            "APP_PIE": "true" if variant.pie else "false",
            "GNUMAKE": str(project.gnumake),
            "JOBS": str(project.options.jobs),
        }

    def build_command(self, dstdir: Path, env: Dict[str, str]) -> List[str]:
        """
        The build driver invocation: the project's ``build.sh`` when runnable,
        ``ndk-build`` otherwise, which also receives ``env`` as make variables.
        """
        project = self.context.project
        script = dstdir / "build.sh"
        if is_runnable(script):
            if IS_WINDOWS:
                return [os.environ.get("SHELL", "sh"), str(script)]
            return [str(script)]

        if not is_runnable(project.ndkbuild):
            raise ConfigurationError(f"Don't know how to build project {project.name}")

        command = [str(project.ndkbuild), "-B", f"-j{project.options.jobs}"]
        command += [f"{key}={value}" for key, value in env.items()]
        return command
