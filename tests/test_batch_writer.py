"""Test batched writes to the record store"""
import pytest

from core.exceptions import StorageError
from services.ingestion.batch_writer import BatchWriter
from services.ingestion.classifier import classify

from conftest import InMemoryRecordStore


def _records(count):
    return [classify('{"type": "user"}', n) for n in range(1, count + 1)]


class TestBatchWriter:
    """Test batching, flushing and progress callbacks"""

    @pytest.mark.asyncio
    async def test_flushes_at_capacity(self, store):
        writer = BatchWriter(store, "file-1", capacity=100)
        for record in _records(250):
            await writer.add(record)

        assert [len(call) for call in store.upsert_calls] == [100, 100]
        assert writer.pending == 50

        await writer.flush()
        assert [len(call) for call in store.upsert_calls] == [100, 100, 50]
        assert writer.flush_count == 3
        assert writer.written == 250
        assert writer.last_flushed_line == 250
        assert len(store.rows("file-1")) == 250

    @pytest.mark.asyncio
    async def test_empty_flush_is_noop(self, store):
        writer = BatchWriter(store, "file-1")
        await writer.flush()

        assert store.upsert_calls == []
        assert writer.flush_count == 0

    @pytest.mark.asyncio
    async def test_on_flush_receives_last_line(self, store):
        seen = []

        async def on_flush(line):
            seen.append(line)

        writer = BatchWriter(store, "file-1", capacity=2, on_flush=on_flush)
        for record in _records(5):
            await writer.add(record)
        await writer.flush()

        assert seen == [2, 4, 5]

    @pytest.mark.asyncio
    async def test_failed_flush_propagates_and_keeps_batch(self):
        store = InMemoryRecordStore(fail_on_upsert=1)
        store.register("file-1")
        writer = BatchWriter(store, "file-1", capacity=10)
        for record in _records(3):
            await writer.add(record)

        with pytest.raises(StorageError):
            await writer.flush()

        assert writer.pending == 3
        assert writer.flush_count == 0
        assert writer.last_flushed_line == 0
        assert len(store.rows("file-1")) == 0

    def test_capacity_must_be_positive(self, store):
        with pytest.raises(ValueError):
            BatchWriter(store, "file-1", capacity=0)
