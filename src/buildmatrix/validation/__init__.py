"""
Validation and error handling for the buildmatrix package.

This module provides the exception taxonomy used by the orchestration
engine, configuration value validators and the transient-failure retry
strategy.
"""

from .exceptions import (
    ErrorSeverity,
    ValidationError,
    OrchestrationError,
    ConfigurationError,
    CommandFailure,
    TransientInfrastructureFailure,
    RetryExhausted,
    CommandCancelled,
    TestingFailed,
    handle_error,
    handle_config_error,
)

from .strategies import (
    DEFAULT_MAX_ATTEMPTS,
    RetryScheduler,
    with_retry,
)

from .validators import (
    validate_comma_list,
    validate_flag,
    validate_option_map,
    validate_pattern_list,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "ValidationError",
    "OrchestrationError",
    "ConfigurationError",
    "CommandFailure",
    "TransientInfrastructureFailure",
    "RetryExhausted",
    "CommandCancelled",
    "TestingFailed",
    "handle_error",
    "handle_config_error",
    # Retry
    "DEFAULT_MAX_ATTEMPTS",
    "RetryScheduler",
    "with_retry",
    # Validators
    "validate_comma_list",
    "validate_flag",
    "validate_option_map",
    "validate_pattern_list",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_string_list",
]
