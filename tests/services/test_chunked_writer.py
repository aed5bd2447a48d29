"""Unit tests for the chunked table writer."""

from unittest.mock import patch

import pytest

from planner_transfer.services import chunked_writer
from planner_transfer.services.chunked_writer import (
    chunk_records,
    no_yield,
    sleep_yield,
    write_chunked,
)
from planner_transfer.store import StorageError


class RecordingTable:
    """In-memory table that records every bulk_add call."""

    def __init__(self, name="tasks", fail_on_call=None):
        self.name = name
        self.calls = []
        self.rows = []
        self.fail_on_call = fail_on_call

    def clear(self):
        self.rows = []

    def bulk_add(self, records):
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise StorageError(f"Failed to bulk add {self.name}: disk full")
        self.calls.append(list(records))
        self.rows.extend(records)

    def to_array(self):
        return list(self.rows)

    def get(self, record_id):
        return next((r for r in self.rows if r["id"] == record_id), None)


def _records(count):
    return [{"id": str(i)} for i in range(count)]


class TestChunkRecords:
    """Test cases for chunk_records."""

    def test_last_chunk_holds_remainder(self):
        """Test that 7 records in chunks of 3 give sizes 3, 3, 1."""
        chunks = list(chunk_records(_records(7), 3))

        assert [len(c) for c in chunks] == [3, 3, 1]

    def test_empty_input_yields_nothing(self):
        """Test that no chunks are produced for no records."""
        assert list(chunk_records([], 50)) == []

    @pytest.mark.parametrize("chunk_size", [0, -1])
    def test_invalid_chunk_size_raises(self, chunk_size):
        """Test that a chunk size below 1 is rejected."""
        with pytest.raises(ValueError):
            list(chunk_records(_records(3), chunk_size))


class TestWriteChunked:
    """Test cases for write_chunked."""

    @pytest.mark.parametrize("chunk_size", [1, 49, 50, 51])
    def test_every_record_written_in_order(self, chunk_size):
        """Test that N*size+1 records land in order with the expected number of calls."""
        records = _records(3 * chunk_size + 1)
        table = RecordingTable()

        written = write_chunked(table, records, chunk_size)

        assert written == len(records)
        assert table.rows == records
        assert len(table.calls) == 4
        assert all(len(call) <= chunk_size for call in table.calls)
        assert len(table.calls[-1]) == 1

    def test_yield_point_called_after_each_chunk(self):
        """Test that the yield point runs once per chunk."""
        yields = []
        table = RecordingTable()

        write_chunked(table, _records(120), 50, yield_point=lambda: yields.append(len(table.rows)))

        assert yields == [50, 100, 120]

    def test_empty_records_write_nothing(self):
        """Test that an empty list causes no store calls."""
        table = RecordingTable()

        assert write_chunked(table, [], 50) == 0
        assert table.calls == []

    def test_invalid_chunk_size_raises_before_writing(self):
        """Test that chunk_size 0 fails without touching the table."""
        table = RecordingTable()

        with pytest.raises(ValueError):
            write_chunked(table, _records(5), 0)
        assert table.calls == []

    def test_failure_keeps_earlier_chunks(self):
        """Test that a failed chunk propagates and earlier chunks stay written."""
        table = RecordingTable(fail_on_call=2)

        with pytest.raises(StorageError):
            write_chunked(table, _records(250), 50)

        assert len(table.rows) == 100
        assert table.rows == _records(100)


class TestYieldPoints:
    """Test cases for the yield point helpers."""

    def test_no_yield_returns_none(self):
        assert no_yield() is None

    def test_sleep_yield_with_zero_delay_is_no_yield(self):
        """Test that a non-positive delay does not sleep at all."""
        assert sleep_yield(0) is no_yield

    def test_sleep_yield_sleeps_for_delay(self):
        """Test that the built yield point sleeps for the configured delay."""
        pause = sleep_yield(0.01)

        with patch.object(chunked_writer.time, "sleep") as mock_sleep:
            pause()

        mock_sleep.assert_called_once_with(0.01)

    def test_default_yield_point_reads_config(self, monkeypatch):
        """Test that IMPORT_YIELD_DELAY_MS is converted to seconds."""
        monkeypatch.setattr(chunked_writer.config, "IMPORT_YIELD_DELAY_MS", 25.0)

        with patch.object(chunked_writer.time, "sleep") as mock_sleep:
            chunked_writer.default_yield_point()()

        mock_sleep.assert_called_once_with(0.025)
