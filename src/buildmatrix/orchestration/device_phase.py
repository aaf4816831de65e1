"""
Device-test dispatch.

Executables built for one ABI are handed to the external device-test runner,
whose structured event stream is translated into progress lines.
"""

from pathlib import Path
from typing import List, Optional

from ..execution import EventProtocol, NoticeLogger
from ..models.events import EventKind, ProgressEvent
from ..models.results import PhaseResult
from ..models.runtime import DeviceTarget, Executable, split_executables
from ..validation import CommandCancelled, handle_error
from .context import PhaseContext
from .result_sink import TEST_FAILED, TEST_SUCCESS


def format_counter(number: int, total: int) -> str:
    """``[n/t]`` body with ``n`` padded to the width of ``t``."""
    width = len(str(total))
    return f"{number:{width}d}/{total:{width}d}"


class EventTranslator:
    """
    Turns runner events into NOTICE progress lines.

    Consecutive skip events with the same reason are logged once.

    Args:
        notices: Notice logger of the project run
        prefix: Progress-line label, e.g. ``device test [foo] +PIE: x86``
        name: Project name used in failure markers
    """

    def __init__(self, notices: NoticeLogger, prefix: str, name: str):
        self.notices = notices
        self.prefix = prefix
        self.name = name
        self._last_skip_reason: Optional[str] = None

    def __call__(self, event: ProgressEvent) -> None:
        kind = event.known_kind
        if kind is EventKind.SKIP:
            reason = str(event.get("reason") or "")
            if reason != self._last_skip_reason:
                counter = format_counter(event.get_int("number"), event.get_int("total"))
                self.notices.notice(f"SKP {self.prefix} [{counter}]{f' {reason}' if reason else ''}")
        elif kind is EventKind.RUN:
            counter = format_counter(event.get_int("number"), event.get_int("total"))
            self.notices.notice(
                f"RUN {self.prefix} [{counter}] android-{event.get('apilevel')} '{event.get('devmodel')}'"
            )
        elif kind is EventKind.FAIL:
            exe = Path(str(event.get("exe", ""))).name
            argv = [str(a) for a in (event.get("args") or [])]
            command = " ".join([exe] + argv)
            self.notices.notice(
                f"   ---> FAILURE: TARGET TEST  [{self.name}] \"{command}\": $?={event.get('exitcode')}"
            )
        elif kind is EventKind.PAUSE:
            self.notices.notice(f"RUN {self.prefix} [paused]")
        elif kind is EventKind.TIMEOUT:
            self.notices.notice(
                f"   ---> FAILURE: TARGET TEST  [{self.name}] TIMEOUT: {event.get('timeout')} seconds"
            )

        self._last_skip_reason = str(event.get("reason") or "") if kind is EventKind.SKIP else None


class DeviceTestDispatcher:
    """Runs the device tests of one device target."""

    def __init__(self, context: PhaseContext):
        self.context = context

    def executables(self, target: DeviceTarget) -> List[Executable]:
        """
        Runnable executables of ``target``: everything under its ABI
        directory except shared libraries and ``broken-run`` entries.
        """
        properties = self.context.project.properties
        binaries = sorted(p for p in target.libs_dir.glob("*") if p.is_file())
        broken = set(properties.broken_run)
        return [
            Executable(path, dict(properties.adbrunner_options.get(path.name, {})))
            for path in split_executables(binaries)
            if path.name not in broken
        ]

    def symbol_dirs(self, target: DeviceTarget, variant_dir: Path) -> List[Path]:
        ndk = self.context.project.ndk
        candidates = [
            ndk / "sources" / "crystax" / "libs" / target.abi,
            variant_dir / "obj" / "local" / target.abi,
        ]
        return [d for d in candidates if d.is_dir()]

    def runner_command(self, target: DeviceTarget, variant_dir: Path,
                       listing: Path, protocol: EventProtocol) -> List[str]:
        project = self.context.project
        options = project.options
        command = list(options.device_runner or ["ruby", str(project.ndk / "tools" / "adbrunner")])
        command.append("--verbose")
        if options.keep_going:
            command.append("--keep-going")
        command.append("--no-print-timestamps")
        if options.adb is not None:
            command.append(f"--adb={options.adb}")
        command += [
            f"--ndk={project.ndk}",
            f"--abi={target.abi}",
            f"--timeout={project.single_run_timeout}",
        ]
        if options.emulator_tag is not None:
            command.append(f"--emulator-tag={options.emulator_tag}")
        command += [
            f"--device-path={options.device_path}",
            "--run-on-all-devices",
            "--pie" if target.variant.pie else "--no-pie",
            f"--mro-prefix={protocol.prefix}",
            f"--symbols-directories={','.join(str(d) for d in self.symbol_dirs(target, variant_dir))}",
            f"--ld-library-path={target.libs_dir}",
            f"@{listing}",
        ]
        return command

    def run(self, target: DeviceTarget) -> PhaseResult:
        """
        Run the device tests of ``target``.

        Returns:
            Skipped when there is nothing to run, succeeded otherwise

        Raises:
            CommandFailure: The runner reported failure
        """
        project = self.context.project
        notices = self.context.notices
        label = project.label(target.variant)

        executables = self.executables(target)
        if not executables:
            reason = f"no {target.abi} binaries"
            notices.notice(f"SKP {label}: {reason}")
            return PhaseResult.skipped(reason)

        label = f"{label}: {target.abi}"
        notices.notice(f"BEG {label}")
        record = {"path": str(project.path), "name": project.name, "abi": target.abi, "pie": target.variant.pie}

        variant_dir = project.variant_dir(target.variant)
        try:
            listing = variant_dir / f"executables-{target.abi}.txt"
            listing.parent.mkdir(parents=True, exist_ok=True)
            listing.write_text("".join(f"{e.to_list_line()}\n" for e in executables), encoding="utf-8")

            protocol = EventProtocol()
            outcome = self.context.supervisor.run(
                self.runner_command(target, variant_dir, listing, protocol),
                on_event=EventTranslator(notices, label, project.name),
                cwd=variant_dir,
                errmsg=f"Test {project.name} failed",
                protocol=protocol,
                cancel_event=self.context.cancel_event,
            )
            outcome.raise_for_status()
        except CommandCancelled:
            raise
        except Exception as e:
            handle_error(e, f"device testing of {project.name}", reraise=False, logger=self.context.logger)
            notices.notice(f"   ---> FAILURE: TARGET TEST  [{project.name}]")
            self.context.emit({"event": TEST_FAILED, **record})
            raise
        self.context.emit({"event": TEST_SUCCESS, **record})
        return PhaseResult.succeeded()
