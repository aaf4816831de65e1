"""
Unit tests for result storage.
"""

import json

import polars as pl
import pytest

from buildmatrix.storage import JsonStorage, ParquetStorage, create_storage, storage_for_path


@pytest.fixture
def records():
    return pl.DataFrame({
        "event": ["build-success", "test-failed"],
        "path": ["/p/foo", "/p/foo"],
        "pie": [True, True],
        "abi": [None, "x86"],
    })


@pytest.mark.unit
class TestStorage:
    def test_parquet_records(self, temp_dir, records):
        storage = ParquetStorage()
        path = temp_dir / "nested" / "records.parquet"

        storage.save_records(records, str(path))
        loaded = pl.read_parquet(path)

        assert loaded.columns == records.columns
        assert loaded["abi"].to_list() == [None, "x86"]

    def test_json_records(self, temp_dir, records):
        storage = JsonStorage()
        path = temp_dir / "records.json"

        storage.save_records(records, str(path))

        assert pl.read_json(path)["event"].to_list() == ["build-success", "test-failed"]

    def test_summary(self, temp_dir):
        storage = ParquetStorage()
        path = temp_dir / "summary.json"

        storage.save_summary({"counts": {"passed": 2}, "projects": []}, str(path))

        assert json.loads(path.read_text(encoding="utf-8")) == {"counts": {"passed": 2}, "projects": []}

    def test_factory(self):
        assert isinstance(create_storage("parquet"), ParquetStorage)
        assert isinstance(create_storage("json"), JsonStorage)
        assert create_storage("parquet", compression="zstd").compression == "zstd"
        with pytest.raises(ValueError):
            create_storage("csv")

    def test_storage_for_path(self):
        assert type(storage_for_path("run.parquet")) is ParquetStorage
        assert type(storage_for_path("run.json")) is JsonStorage
