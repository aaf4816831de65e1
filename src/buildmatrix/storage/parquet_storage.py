"""
Result storage implementations using Polars.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal

import polars as pl

from .base import ResultStorage

logger = logging.getLogger(__name__)


class ParquetStorage(ResultStorage):
    """
    Stores the record table as Parquet and the summary as JSON.

    Args:
        compression: Parquet compression algorithm
    """

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    def save_records(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
            logger.debug(f"Saved {len(df)} records to {path}")
        except Exception as e:
            logger.error(f"Failed to save records to {path}: {e}")
            raise

    def save_summary(self, data: Dict[str, Any], path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            logger.debug(f"Saved summary to {path}")
        except Exception as e:
            logger.error(f"Failed to save summary to {path}: {e}")
            raise


class JsonStorage(ParquetStorage):
    """Stores the record table as a JSON array of row objects."""

    def save_records(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_json(path)
            logger.debug(f"Saved {len(df)} records to {path}")
        except Exception as e:
            logger.error(f"Failed to save records to {path}: {e}")
            raise
