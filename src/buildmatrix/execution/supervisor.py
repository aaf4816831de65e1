"""
Supervision of external build and test commands.

A supervised command has its standard output and standard error drained by
two worker threads while a third thread acts as a watchdog, logging a
"still running" notice whenever nothing noteworthy was logged for a while.
Standard output lines are classified by an :class:`EventProtocol`; decoded
events are handed to the caller, everything else is logged.
"""

import logging
import os
import subprocess
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

from ..models.events import ProgressEvent
from ..models.runtime import CommandOutcome, command_to_text
from ..validation import CommandCancelled
from .event_protocol import EventProtocol, LineKind
from .notice import NOTICE, NoticeClock, format_elapsed
from .process_tree import terminate_process_tree

logger = logging.getLogger(__name__)

# Standard error lines starting with this marker denote a directory-creation
# failure, the only failure considered transient.
TRANSIENT_FAILURE_MARKER = "mkdir:"

Command = Union[str, Sequence[str]]
EventCallback = Callable[[ProgressEvent], None]


class ProcessSupervisor:
    """
    Runs external commands to completion while draining their output.

    Args:
        notice_clock: Shared liveness clock; a private one is created if omitted
        watchdog_interval: Seconds between watchdog checks
        quiet_period: Seconds without notices after which a liveness notice is logged
        poll_interval: Seconds between cancellation checks while waiting
        logger: Logger receiving the command output
    """

    def __init__(
        self,
        notice_clock: Optional[NoticeClock] = None,
        watchdog_interval: float = 5.0,
        quiet_period: float = 30.0,
        poll_interval: float = 0.5,
        logger: Optional[logging.Logger] = None,
    ):
        self.notice_clock = notice_clock or NoticeClock()
        self.watchdog_interval = watchdog_interval
        self.quiet_period = quiet_period
        self.poll_interval = poll_interval
        self.logger = logger or globals()['logger']

    def run(
        self,
        command: Command,
        env: Optional[Mapping[str, object]] = None,
        on_event: Optional[EventCallback] = None,
        *,
        cwd: Optional[Path] = None,
        errmsg: Optional[str] = None,
        track_transient_failures: bool = False,
        protocol: Optional[EventProtocol] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommandOutcome:
        """
        Run ``command`` to completion.

        Args:
            command: Shell command string, or an argument vector run without a shell
            env: Variables added to the current environment
            on_event: Called (from the stdout drain thread) for every decoded event
            cwd: Working directory of the command
            errmsg: Error message used when the command fails
            track_transient_failures: Watch standard error for the ``mkdir:`` signature
            protocol: Event protocol; a fresh random prefix is used if omitted
            cancel_event: When set, the command's process tree is terminated

        Returns:
            The command outcome; call :meth:`CommandOutcome.raise_for_status`
            to turn a failure into an exception

        Raises:
            CommandCancelled: If ``cancel_event`` fired while the command ran
            Exception: Whatever ``on_event`` raised (the command is terminated first)
        """
        protocol = protocol or EventProtocol()
        command_text = command_to_text(command)
        failure_message = errmsg or f"'{command_text}' failed"

        self.logger.info(f"## COMMAND: {command_text}")
        self.logger.info(f"## CWD: {cwd or os.getcwd()}")

        full_env: Dict[str, str] = os.environ.copy()
        full_env.update({key: str(value) for key, value in (env or {}).items()})

        started = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                shell=isinstance(command, str),
                cwd=cwd,
                env=full_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            self.logger.info(f"   * {e}")
            return CommandOutcome(
                command=command,
                return_code=-1,
                succeeded=False,
                error_message=failure_message,
                duration=time.monotonic() - started,
            )

        drains_done = threading.Event()
        with process:
            with ThreadPoolExecutor(max_workers=3, thread_name_prefix="Supervisor") as pool:
                stdout_future = pool.submit(self._drain_stdout, process.stdout, protocol, on_event)
                stderr_future = pool.submit(
                    self._drain_stderr, process.stderr, track_transient_failures
                )
                watchdog_future = pool.submit(self._watchdog, drains_done, started)
                try:
                    cancelled = self._wait_for_drains(
                        [stdout_future, stderr_future], process, cancel_event
                    )
                finally:
                    drains_done.set()
                watchdog_future.result()
                event_count = stdout_future.result()
                transient_detected = stderr_future.result()
            return_code = process.wait()

        duration = time.monotonic() - started
        if cancelled:
            raise CommandCancelled(f"'{command_text}' was cancelled")

        succeeded = return_code == 0
        self.logger.debug(
            f"'{command_text}' finished with exit code {return_code} in {duration:.1f}s"
        )
        return CommandOutcome(
            command=command,
            return_code=return_code,
            succeeded=succeeded,
            transient_failure_detected=transient_detected,
            error_message=None if succeeded else failure_message,
            duration=duration,
            event_count=event_count,
        )

    def check_call(self, command: Command, env: Optional[Mapping[str, object]] = None,
                   on_event: Optional[EventCallback] = None, **kwargs) -> CommandOutcome:
        """Like :meth:`run`, but raise the outcome's failure condition."""
        outcome = self.run(command, env, on_event, **kwargs)
        outcome.raise_for_status()
        return outcome

    def _drain_stdout(self, stream, protocol: EventProtocol,
                      on_event: Optional[EventCallback]) -> int:
        event_count = 0
        for raw in iter(stream.readline, ""):
            parsed = protocol.parse(raw.rstrip("\r\n"))
            if parsed.kind is LineKind.EVENT:
                event_count += 1
                if on_event is not None:
                    on_event(parsed.event)
            elif parsed.kind is LineKind.TEXT:
                self.logger.info(f"   > {parsed.text}")
        return event_count

    def _drain_stderr(self, stream, track_transient_failures: bool) -> bool:
        detected = False
        for raw in iter(stream.readline, ""):
            line = raw.rstrip("\r\n")
            self.logger.info(f"   * {line}")
            if track_transient_failures and line.startswith(TRANSIENT_FAILURE_MARKER):
                detected = True
        return detected

    def _watchdog(self, drains_done: threading.Event, started: float) -> None:
        while not drains_done.wait(self.watchdog_interval):
            if self.notice_clock.touch_if_quiet(self.quiet_period):
                elapsed = format_elapsed(time.monotonic() - started)
                self.logger.log(NOTICE, f"## STILL RUNNING ({elapsed})")

    def _wait_for_drains(self, futures: Iterable[Future], process: subprocess.Popen,
                         cancel_event: Optional[threading.Event]) -> bool:
        """
        Wait until both drains finished.

        The process tree is terminated when cancellation is requested or a
        drain died (e.g. the event callback raised), so the other drain sees
        end-of-file. Returns True if termination was due to cancellation.
        """
        pending = set(futures)
        terminated = False
        cancelled = False
        while pending:
            done, pending = wait(pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED)
            if terminated:
                continue
            drain_failed = any(f.exception() is not None for f in done)
            cancel_requested = cancel_event is not None and cancel_event.is_set()
            if drain_failed or cancel_requested:
                cancelled = cancel_requested and not drain_failed
                terminate_process_tree(process.pid, "supervised command")
                terminated = True
        return cancelled
