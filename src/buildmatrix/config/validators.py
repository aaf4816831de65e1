"""
Configuration validation utilities.

Raw documents are validated once, at load time, into the typed structures
from :mod:`buildmatrix.models.config`.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import psutil

from ..models.config import ProjectProperties, RunConfig
from ..validation import (
    DEFAULT_MAX_ATTEMPTS,
    ValidationError,
    validate_flag,
    validate_option_map,
    validate_pattern_list,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
)

logger = logging.getLogger(__name__)

_KNOWN_PROPERTY_KEYS = {
    "broken",
    "long",
    "broken-toolchain-type",
    "broken-toolchain-version",
    "broken-run",
    "onhost-disabled-os",
    "onhost-disabled-cc",
    "single-run-timeout",
    "adbrunner-options",
}


def validate_project_properties(raw: Dict[str, Any]) -> ProjectProperties:
    """
    Validate and create ProjectProperties from a raw properties document.

    Args:
        raw: Parsed properties document (possibly empty)

    Returns:
        Validated ProjectProperties instance

    Raises:
        ValidationError: If a value has an unusable shape
    """
    unknown = sorted(set(raw) - _KNOWN_PROPERTY_KEYS)
    if unknown:
        logger.debug(f"Ignoring unknown project properties: {', '.join(unknown)}")

    timeout = raw.get("single-run-timeout")
    if timeout is not None:
        timeout = validate_positive_integer(timeout, field_name="single-run-timeout")

    return ProjectProperties(
        broken=validate_flag(raw.get("broken")),
        long=validate_flag(raw.get("long")),
        broken_toolchain_types=validate_string_list(
            raw.get("broken-toolchain-type"), field_name="broken-toolchain-type"
        ),
        broken_toolchain_versions=validate_string_list(
            raw.get("broken-toolchain-version"), field_name="broken-toolchain-version"
        ),
        broken_run=validate_string_list(raw.get("broken-run"), field_name="broken-run"),
        onhost_disabled_os=validate_pattern_list(
            raw.get("onhost-disabled-os"), field_name="onhost-disabled-os"
        ),
        onhost_disabled_cc=validate_string_list(
            raw.get("onhost-disabled-cc"), field_name="onhost-disabled-cc"
        ),
        single_run_timeout=timeout,
        adbrunner_options=validate_option_map(
            raw.get("adbrunner-options"), field_name="adbrunner-options"
        ),
    )


def validate_run_config(run_data: Dict[str, Any]) -> RunConfig:
    """
    Validate and create a RunConfig from the ``[run]`` table.

    Args:
        run_data: Raw run configuration

    Returns:
        Validated RunConfig instance

    Raises:
        ValidationError: If validation fails
    """
    jobs = validate_positive_integer(
        run_data.get("jobs", psutil.cpu_count() or 1),
        min_value=1,
        max_value=1024,
        field_name="run.jobs",
    )

    single_run_timeout = validate_positive_integer(
        run_data.get("single_run_timeout", 600),
        min_value=1,
        field_name="run.single_run_timeout",
    )

    max_attempts = validate_positive_integer(
        run_data.get("max_attempts", DEFAULT_MAX_ATTEMPTS),
        min_value=1,
        max_value=100,
        field_name="run.max_attempts",
    )

    watchdog_interval = validate_positive_float(
        run_data.get("watchdog_interval", 5.0),
        min_value=0.01,
        max_value=600.0,
        field_name="run.watchdog_interval",
    )

    notice_quiet_period = validate_positive_float(
        run_data.get("notice_quiet_period", 30.0),
        min_value=0.0,
        max_value=3600.0,
        field_name="run.notice_quiet_period",
    )

    device_path = run_data.get("device_path", "/data/local/tmp/ndk-tests")
    if not isinstance(device_path, str) or not device_path.startswith("/"):
        raise ValidationError(
            "run.device_path must be an absolute path string",
            field_name="run.device_path",
            value=device_path,
        )

    for flag in ("keep_going", "full_testing"):
        if not isinstance(run_data.get(flag, False), bool):
            raise ValidationError(f"run.{flag} must be a boolean", field_name=f"run.{flag}")

    return RunConfig(
        jobs=jobs,
        single_run_timeout=single_run_timeout,
        device_path=device_path,
        keep_going=run_data.get("keep_going", False),
        full_testing=run_data.get("full_testing", False),
        max_attempts=max_attempts,
        watchdog_interval=watchdog_interval,
        notice_quiet_period=notice_quiet_period,
        outdir=Path(run_data.get("outdir", "/tmp/buildmatrix")),
    )
