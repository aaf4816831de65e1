"""
Exception taxonomy and error handling helpers.

This module defines the errors raised by supervised commands and the
orchestration phases, together with the small logging helper used at phase
boundaries to report an error before re-raising it.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when a configuration value fails validation.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class OrchestrationError(Exception):
    """Base class for all build and test orchestration failures."""


class ConfigurationError(OrchestrationError):
    """
    The environment or project cannot be orchestrated at all.

    Raised for a missing project directory or build driver, an unknown host
    platform, a compiler that cannot be classified or an invalid properties
    document. Always fatal for the project.
    """


class CommandFailure(OrchestrationError):
    """A supervised command exited with a nonzero status."""

    def __init__(self, message: str, command: Union[str, Sequence[str], None] = None,
                 return_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.command = command
        self.return_code = return_code


class TransientInfrastructureFailure(CommandFailure):
    """
    A command failed and its standard error carried the directory-creation
    signature, so the failure is considered retryable.
    """


class RetryExhausted(OrchestrationError):
    """All attempts of a retried operation hit transient failures."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class CommandCancelled(OrchestrationError):
    """The cancellation token fired while a supervised command was running."""


class TestingFailed(OrchestrationError):
    """One or more build or device-test phases failed under keep-going mode."""

    __test__ = False

    def __init__(self, message: str, failure_count: int):
        super().__init__(message)
        self.failure_count = failure_count


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)
