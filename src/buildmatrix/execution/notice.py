"""
Notice-level logging and the liveness clock.

Progress lines are logged at a dedicated NOTICE level. Every notice touches a
:class:`NoticeClock`, which the supervisor's watchdog consults to decide
whether a "still running" line is due.
"""

import logging
import threading
import time
from typing import Callable, Optional

NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")


class NoticeClock:
    """
    Thread-safe cell holding the time of the last notice-level line.

    Args:
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._last_notice = clock()

    def touch(self) -> None:
        now = self._clock()
        with self._lock:
            self._last_notice = now

    def seconds_since_notice(self) -> float:
        now = self._clock()
        with self._lock:
            return now - self._last_notice

    def touch_if_quiet(self, quiet_period: float) -> bool:
        """
        Atomically claim the right to emit a liveness notice.

        Returns True (and records a notice) only when no notice was recorded
        within the last ``quiet_period`` seconds, so concurrent watchdogs
        sharing a clock emit at most one notice per window.
        """
        now = self._clock()
        with self._lock:
            if now - self._last_notice < quiet_period:
                return False
            self._last_notice = now
            return True


class NoticeLogger:
    """Logs progress lines at NOTICE level and keeps the clock current."""

    def __init__(self, logger: logging.Logger, clock: Optional[NoticeClock] = None):
        self.logger = logger
        self.clock = clock or NoticeClock()

    def notice(self, msg: str) -> None:
        self.logger.log(NOTICE, msg)
        self.clock.touch()

    def info(self, msg: str) -> None:
        self.logger.info(msg)


def format_elapsed(seconds: float) -> str:
    """Format a duration as ``h:mm:ss``."""
    total = int(seconds)
    return "%d:%02d:%02d" % (total // 3600, (total // 60) % 60, total % 60)
