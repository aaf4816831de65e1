"""
Storage of run results.

Records collected from the result sinks are persisted as a Polars table
(Parquet or JSON) next to a JSON summary of per-project statuses.
"""

from .base import ResultStorage
from .factory import create_storage, storage_for_path
from .parquet_storage import JsonStorage, ParquetStorage

__all__ = ["ResultStorage", "ParquetStorage", "JsonStorage", "create_storage", "storage_for_path"]
