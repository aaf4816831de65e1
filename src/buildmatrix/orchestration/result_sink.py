"""
Receivers of build and test lifecycle records.

Records are dictionaries with at least an ``event`` key
(``build-success``, ``build-failed``, ``test-success``, ``test-failed``) and
the project ``path``. Sinks are fire-and-forget: nothing they do influences
orchestration.
"""

import json
import os
import sys
import threading
from abc import ABC, abstractmethod
from typing import IO, Any, Dict, List, Optional

import polars as pl

from ..execution.event_protocol import DEFAULT_PREFIX_STEM

BUILD_SUCCESS = "build-success"
BUILD_FAILED = "build-failed"
TEST_SUCCESS = "test-success"
TEST_FAILED = "test-failed"

# Environment variable selecting the prefix of records written to a stream.
PREFIX_ENV_VAR = "BUILDMATRIX_MRO_PREFIX"


class ResultSink(ABC):
    """Abstract receiver of lifecycle records."""

    @abstractmethod
    def emit(self, record: Dict[str, Any]) -> None:
        """
        Accept one record.

        Args:
            record: Record with an ``event`` key and identifying fields
        """
        pass


class NullResultSink(ResultSink):
    def emit(self, record: Dict[str, Any]) -> None:
        return None


class StreamResultSink(ResultSink):
    """
    Writes each record as one prefixed JSON line.

    An outer supervisor that started this process with
    ``BUILDMATRIX_MRO_PREFIX`` set can decode the lines with its
    :class:`~buildmatrix.execution.EventProtocol`.
    """

    def __init__(self, stream: Optional[IO[str]] = None, prefix: Optional[str] = None):
        self.stream = stream or sys.stdout
        self.prefix = prefix or os.environ.get(PREFIX_ENV_VAR, DEFAULT_PREFIX_STEM)
        self._lock = threading.Lock()

    def emit(self, record: Dict[str, Any]) -> None:
        line = f"{self.prefix}{json.dumps(record, separators=(',', ':'), default=str)}\n"
        with self._lock:
            self.stream.write(line)
            self.stream.flush()


class RecordingResultSink(ResultSink):
    """Keeps every record in memory for the run summary."""

    def __init__(self):
        self._records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def emit(self, record: Dict[str, Any]) -> None:
        with self._lock:
            self._records.append(dict(record))

    @property
    def records(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._records)

    def events(self) -> List[str]:
        return [r["event"] for r in self.records]

    def to_dataframe(self) -> pl.DataFrame:
        """
        Records as a DataFrame with one column per key seen.

        Missing keys are null; ``pie`` is a boolean column.
        """
        records = self.records
        if not records:
            return pl.DataFrame(schema={"event": pl.Utf8, "path": pl.Utf8, "pie": pl.Boolean})
        columns: List[str] = []
        for record in records:
            for key in record:
                if key not in columns:
                    columns.append(key)
        rows = [{key: _column_value(record.get(key)) for key in columns} for record in records]
        return pl.DataFrame(rows, infer_schema_length=None)


class MultiResultSink(ResultSink):
    """Forwards every record to several sinks."""

    def __init__(self, *sinks: ResultSink):
        self.sinks = list(sinks)

    def emit(self, record: Dict[str, Any]) -> None:
        for sink in self.sinks:
            sink.emit(record)


def _column_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)
