"""
Unit tests for the transient-failure retry strategy.
"""

import logging
from unittest.mock import Mock

import pytest

from buildmatrix.validation import (
    DEFAULT_MAX_ATTEMPTS,
    CommandFailure,
    RetryExhausted,
    RetryScheduler,
    TransientInfrastructureFailure,
    with_retry,
)


def transient():
    return TransientInfrastructureFailure("Build of project foo failed", command="build.sh", return_code=1)


@pytest.mark.unit
class TestRetryScheduler:
    """Test cases for RetryScheduler.run."""

    def test_success_on_first_attempt(self):
        operation = Mock(return_value="ok")

        assert RetryScheduler().run(operation, "Build", "foo") == "ok"
        assert operation.call_count == 1

    def test_retries_transient_failures_until_success(self, caplog):
        operation = Mock(side_effect=[transient(), transient(), "done"])

        with caplog.at_level(logging.WARNING):
            result = RetryScheduler().run(operation, "Build", "foo")

        assert result == "done"
        assert operation.call_count == 3
        warnings = [r.getMessage() for r in caplog.records]
        assert warnings == [
            "Build of 'foo' failed due to 'mkdir' error; trying again (attempt #2)",
            "Build of 'foo' failed due to 'mkdir' error; trying again (attempt #3)",
        ]

    def test_exhaustion_after_five_attempts(self):
        operation = Mock(side_effect=transient)

        with pytest.raises(RetryExhausted) as exc_info:
            RetryScheduler().run(operation, "Build", "foo")

        assert operation.call_count == DEFAULT_MAX_ATTEMPTS == 5
        assert exc_info.value.attempts == 5
        assert str(exc_info.value) == "Build of project foo failed"
        assert isinstance(exc_info.value.__cause__, TransientInfrastructureFailure)

    def test_command_failure_is_not_retried(self):
        operation = Mock(side_effect=CommandFailure("Build of project foo failed", return_code=2))

        with pytest.raises(CommandFailure):
            RetryScheduler().run(operation, "Build", "foo")

        assert operation.call_count == 1

    def test_other_errors_propagate(self):
        operation = Mock(side_effect=OSError("disk full"))

        with pytest.raises(OSError):
            RetryScheduler().run(operation, "Build", "foo")
        assert operation.call_count == 1

    def test_custom_ceiling(self):
        operation = Mock(side_effect=transient)

        with pytest.raises(RetryExhausted):
            RetryScheduler(max_attempts=2).run(operation, "On-host testing", "bar")

        assert operation.call_count == 2

    def test_invalid_ceiling(self):
        with pytest.raises(ValueError):
            RetryScheduler(max_attempts=0)

    def test_with_retry_wrapper(self):
        operation = Mock(side_effect=[transient(), 42])

        assert with_retry(operation, "Build", "foo") == 42
        assert operation.call_count == 2
