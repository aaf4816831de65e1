"""
Unit tests for result sinks.
"""

import io
import threading

import polars as pl
import pytest

from buildmatrix.execution import EventProtocol
from buildmatrix.orchestration import (
    BUILD_SUCCESS,
    TEST_FAILED,
    MultiResultSink,
    NullResultSink,
    RecordingResultSink,
    StreamResultSink,
)


@pytest.mark.unit
class TestStreamResultSink:
    def test_lines_decode_with_event_protocol(self):
        stream = io.StringIO()
        sink = StreamResultSink(stream, prefix="OUTER-")

        sink.emit({"event": BUILD_SUCCESS, "path": "/p/foo", "pie": True})

        line = stream.getvalue()
        assert line.endswith("\n")
        parsed = EventProtocol("OUTER-").parse(line.rstrip("\n"))
        assert parsed.event.kind == BUILD_SUCCESS
        assert parsed.event.get("pie") is True

    def test_prefix_from_environment(self, monkeypatch):
        monkeypatch.setenv("BUILDMATRIX_MRO_PREFIX", "ENV-PFX-")
        stream = io.StringIO()

        StreamResultSink(stream).emit({"event": BUILD_SUCCESS})

        assert stream.getvalue().startswith('ENV-PFX-{"event"')


@pytest.mark.unit
class TestRecordingResultSink:
    def test_records_and_events(self):
        sink = RecordingResultSink()
        sink.emit({"event": BUILD_SUCCESS, "path": "/p", "pie": False})
        sink.emit({"event": TEST_FAILED, "path": "/p", "pie": False, "abi": "x86", "name": "p"})

        assert sink.events() == [BUILD_SUCCESS, TEST_FAILED]
        assert sink.records[1]["abi"] == "x86"

    def test_emitted_record_is_copied(self):
        sink = RecordingResultSink()
        record = {"event": BUILD_SUCCESS}
        sink.emit(record)
        record["event"] = "changed"

        assert sink.events() == [BUILD_SUCCESS]

    def test_dataframe(self):
        sink = RecordingResultSink()
        sink.emit({"event": "build-failed", "path": "/p"})
        sink.emit({"event": "test-success", "path": "/p", "pie": True, "abi": "x86"})

        df = sink.to_dataframe()

        assert df.columns == ["event", "path", "pie", "abi"]
        assert df["pie"].to_list() == [None, True]
        assert df.filter(pl.col("event") == "test-success")["abi"].to_list() == ["x86"]

    def test_empty_dataframe(self):
        df = RecordingResultSink().to_dataframe()

        assert len(df) == 0
        assert "event" in df.columns

    def test_thread_safe(self):
        sink = RecordingResultSink()

        def emit_many():
            for i in range(200):
                sink.emit({"event": BUILD_SUCCESS, "n": i})

        threads = [threading.Thread(target=emit_many) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(sink.records) == 800


@pytest.mark.unit
def test_multi_sink_fans_out():
    first, second = RecordingResultSink(), RecordingResultSink()

    MultiResultSink(first, NullResultSink(), second).emit({"event": BUILD_SUCCESS})

    assert first.events() == second.events() == [BUILD_SUCCESS]
