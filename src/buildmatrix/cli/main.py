"""
Command-line interface for the buildmatrix orchestration engine.

This module parses the command line, merges it with the optional run
configuration file and runs every named project through its build and test
phases.
"""

import argparse
import logging
import os
import shlex
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..models.config import OrchestratorOptions, RunConfig
from ..orchestration import StreamResultSink
from ..validation import ConfigurationError, ValidationError, validate_comma_list, validate_positive_integer
from .runner import RunCoordinator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2

LOG_FORMAT = "%(asctime)s [%(levelname)-6.6s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildmatrix",
        description="Build projects with the NDK for every variant and run their tests.",
    )
    parser.add_argument("projects", nargs="+", type=Path, metavar="PROJECT_DIR",
                        help="Project directories to build and test.")
    parser.add_argument("--ndk", type=Path, required=True, help="NDK root directory.")
    parser.add_argument("--type", dest="project_type", default="unknown",
                        help="Project category; 'device' projects get device testing.")
    parser.add_argument("--outdir", type=Path, help="Root of the working directories.")
    parser.add_argument("-j", "--jobs", type=int, help="Build parallelism.")
    parser.add_argument("--adb", help="Path to adb.")
    parser.add_argument("--toolchain-version", help="Toolchain to build with, e.g. 4.9 or clang3.6.")
    pie = parser.add_mutually_exclusive_group()
    pie.add_argument("--pie", dest="pie", action="store_true", default=None,
                     help="Build position-independent executables only.")
    pie.add_argument("--no-pie", dest="pie", action="store_false",
                     help="Build non position-independent executables only.")
    parser.add_argument("--abis", help="Comma separated ABIs to test on devices.")
    parser.add_argument("--emulator-tag", help="Tag of emulators to run tests on.")
    parser.add_argument("--timeout", type=int, help="Per-executable timeout of device runs, in seconds.")
    parser.add_argument("--keep-going", action="store_true", default=None,
                        help="Count build and device-test failures instead of stopping.")
    parser.add_argument("--full-testing", action="store_true", default=None,
                        help="Also run projects marked as long.")
    parser.add_argument("--tests", help="Comma separated names of explicitly requested projects.")
    parser.add_argument("--config", type=Path, help="Run configuration file (TOML).")
    parser.add_argument("--log-dir", type=Path, help="Write a log file per project under this directory.")
    parser.add_argument("--summary", type=Path,
                        help="Write records and statuses to this file (.parquet or .json).")
    parser.add_argument("--device-runner", help="Command of the device-test runner.")
    parser.add_argument("--emit-records", action="store_true",
                        help="Print build and test records as prefixed JSON lines.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def build_options(args: argparse.Namespace, run_config: RunConfig,
                  cancel_event: Optional[threading.Event] = None) -> OrchestratorOptions:
    """
    Merge the command line over the run configuration.

    Raises:
        ValidationError: If a value is out of range
    """
    jobs = run_config.jobs if args.jobs is None else validate_positive_integer(args.jobs, field_name="--jobs")
    timeout = run_config.single_run_timeout
    if args.timeout is not None:
        timeout = validate_positive_integer(args.timeout, field_name="--timeout")
    return OrchestratorOptions(
        project_type=args.project_type,
        outdir=args.outdir or run_config.outdir,
        jobs=jobs,
        adb=args.adb,
        toolchain_version=args.toolchain_version,
        pie=args.pie,
        abis=validate_comma_list(args.abis, field_name="--abis"),
        emulator_tag=args.emulator_tag,
        single_run_timeout=timeout,
        keep_going=run_config.keep_going if args.keep_going is None else args.keep_going,
        full_testing=run_config.full_testing if args.full_testing is None else args.full_testing,
        tests=validate_comma_list(args.tests, field_name="--tests"),
        device_path=run_config.device_path,
        device_runner=shlex.split(args.device_runner) if args.device_runner else None,
        disable_onhost_testing=os.environ.get("DISABLE_ONHOST_TESTING") == "yes",
        max_attempts=run_config.max_attempts,
        watchdog_interval=run_config.watchdog_interval,
        notice_quiet_period=run_config.notice_quiet_period,
        cancel_event=cancel_event,
    )


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line and return the exit status.

    0 when every project passed or was skipped, 1 when any failed and 2 for
    configuration errors.
    """
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        set_config_path(args.config)
        options = build_options(args, get_config(), threading.Event())
    except (ConfigurationError, ValidationError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    coordinator = RunCoordinator(
        args.ndk,
        options,
        sink=StreamResultSink() if args.emit_records else None,
        log_dir=args.log_dir,
    )

    def signal_handler(signum, frame):
        if coordinator.cancel_event.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        logger.info(f"Signal {signal.strsignal(signum)} received. Initiating graceful shutdown...")
        coordinator.request_shutdown()

    previous_handlers = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous_handlers[signum] = signal.signal(signum, signal_handler)

    logger.info(f"Testing {len(args.projects)} project(s) with NDK {args.ndk}")
    try:
        statuses = coordinator.run(args.projects)
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    for status in statuses:
        line = f"{status.status.upper():9s} {status.name}"
        if status.reason:
            line += f": {status.reason}"
        logger.info(line)

    if args.summary is not None:
        coordinator.write_summary(args.summary)

    if coordinator.cancel_event.is_set():
        logger.info("Testing was terminated prematurely due to a shutdown request.")
        return EXIT_FAILED
    return EXIT_OK if coordinator.succeeded else EXIT_FAILED


def main_cli() -> None:
    """Console entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    sys.exit(run())


if __name__ == "__main__":
    main_cli()
