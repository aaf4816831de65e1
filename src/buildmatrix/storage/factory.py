"""
Factory for creating storage instances.
"""

import logging
from pathlib import Path
from typing import Literal, Union

from .base import ResultStorage
from .parquet_storage import JsonStorage, ParquetStorage

logger = logging.getLogger(__name__)


def create_storage(
    format_type: Literal["parquet", "json"] = "parquet",
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy",
) -> ResultStorage:
    """
    Create a storage instance based on the specified format type.

    Args:
        format_type: Storage format type ('parquet' or 'json')
        compression: Compression algorithm (for Parquet only)

    Raises:
        ValueError: If an unsupported format type is specified
    """
    if format_type == "parquet":
        logger.debug(f"Creating ParquetStorage with compression: {compression}")
        return ParquetStorage(compression=compression)
    elif format_type == "json":
        logger.debug("Creating JsonStorage")
        return JsonStorage()
    else:
        raise ValueError(f"Unsupported storage format: {format_type}")


def storage_for_path(path: Union[str, Path]) -> ResultStorage:
    """Parquet for ``.parquet`` paths, JSON for everything else."""
    return create_storage("parquet" if Path(path).suffix == ".parquet" else "json")
