"""
Abstract base class for result storage implementations.

A storage backend persists the records collected by a run (one row per
build or test record) and the run summary document.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

import polars as pl


class ResultStorage(ABC):
    """Abstract base class for result storage implementations."""

    @abstractmethod
    def save_records(self, df: pl.DataFrame, path: str) -> None:
        """
        Save the record table to the specified path.

        Args:
            df: One row per build or test record
            path: File path to save to
        """
        pass

    @abstractmethod
    def save_summary(self, data: Dict[str, Any], path: str) -> None:
        """
        Save the run summary document.

        Args:
            data: Summary data
            path: File path to save to
        """
        pass
