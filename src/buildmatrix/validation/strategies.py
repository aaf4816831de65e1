"""
Retry strategy for supervised commands.

Only transient infrastructure failures are retried; every other error
propagates on the first occurrence.
"""

import logging
from typing import Callable, Optional, TypeVar

from .exceptions import RetryExhausted, TransientInfrastructureFailure

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_MAX_ATTEMPTS = 5


class RetryScheduler:
    """
    Bounded retry loop keyed on :class:`TransientInfrastructureFailure`.

    Args:
        max_attempts: Total number of attempts, including the first one
        logger: Logger receiving the per-attempt warnings
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 logger: Optional[logging.Logger] = None):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.logger = logger or globals()['logger']

    def run(self, operation: Callable[[], T], description: str, project_name: str) -> T:
        """
        Invoke ``operation`` until it succeeds or the ceiling is reached.

        Args:
            operation: Zero-argument callable, typically a supervised command
            description: Human readable operation name, e.g. "Build"
            project_name: Name of the project the operation belongs to

        Returns:
            Whatever ``operation`` returns

        Raises:
            RetryExhausted: After ``max_attempts`` consecutive transient failures
            Exception: Any non-transient error raised by ``operation``
        """
        attempt = 1
        while True:
            try:
                return operation()
            except TransientInfrastructureFailure as e:
                attempt += 1
                if attempt > self.max_attempts:
                    raise RetryExhausted(
                        f"{description} of project {project_name} failed",
                        attempts=self.max_attempts,
                    ) from e
                self.logger.warning(
                    f"{description} of '{project_name}' failed due to 'mkdir' error; "
                    f"trying again (attempt #{attempt})"
                )


def with_retry(
    operation: Callable[[], T],
    description: str,
    project_name: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> T:
    """Convenience wrapper around :meth:`RetryScheduler.run`."""
    return RetryScheduler(max_attempts=max_attempts).run(operation, description, project_name)
