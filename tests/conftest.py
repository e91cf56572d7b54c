"""Shared fixtures for the session ingest tests."""
import asyncio
import json
from typing import Dict, List, Optional, Sequence

import pytest

from core.exceptions import NotFoundError, StorageError
from models.session_file import ProcessingStatus
from services.ingestion import FileState, IngestionOrchestrator, ParsedRecord, RecordStore


class InMemoryRecordStore(RecordStore):
    """Record store kept in dictionaries.

    ``fail_on_upsert`` makes the Nth upsert call (1-based) raise a
    StorageError; ``upsert_delay`` slows every upsert down.
    """

    def __init__(self, fail_on_upsert: Optional[int] = None, upsert_delay: float = 0):
        self.files: Dict[str, FileState] = {}
        self.lines: Dict[str, Dict[int, dict]] = {}
        self.upsert_calls: List[List[int]] = []
        self.progress_updates: List[int] = []
        self.fail_on_upsert = fail_on_upsert
        self.upsert_delay = upsert_delay

    def register(self, file_id: str, status: str = ProcessingStatus.PENDING, processed_lines: int = 0) -> None:
        self.files[file_id] = FileState(file_id=file_id, status=status, processed_lines=processed_lines)
        self.lines.setdefault(file_id, {})

    def rows(self, file_id: str) -> List[dict]:
        return [self.lines[file_id][n] for n in sorted(self.lines.get(file_id, {}))]

    def _state(self, file_id: str) -> FileState:
        if file_id not in self.files:
            raise NotFoundError(f"Session file {file_id} not found")
        return self.files[file_id]

    async def upsert_lines(self, file_id: str, records: Sequence[ParsedRecord]) -> int:
        self.upsert_calls.append([r.line_number for r in records])
        if self.upsert_delay:
            await asyncio.sleep(self.upsert_delay)
        else:
            await asyncio.sleep(0)
        if self.fail_on_upsert == len(self.upsert_calls):
            raise StorageError("simulated write failure", file_id=file_id)
        stored = self.lines.setdefault(file_id, {})
        for record in records:
            stored[record.line_number] = record.to_row(file_id)
        return len(records)

    async def get_state(self, file_id: str) -> Optional[FileState]:
        await asyncio.sleep(0)
        state = self.files.get(file_id)
        if state is None:
            return None
        return FileState(state.file_id, state.status, state.processed_lines, state.error)

    async def start_processing(self, file_id: str, processed_lines: int) -> None:
        state = self._state(file_id)
        state.status = ProcessingStatus.PROCESSING
        state.processed_lines = processed_lines
        state.error = None

    async def update_progress(self, file_id: str, processed_lines: int) -> None:
        self._state(file_id).processed_lines = processed_lines
        self.progress_updates.append(processed_lines)

    async def complete(self, file_id: str, processed_lines: int) -> None:
        state = self._state(file_id)
        state.status = ProcessingStatus.COMPLETED
        state.processed_lines = processed_lines
        state.error = None

    async def fail(self, file_id: str, message: str) -> None:
        state = self._state(file_id)
        state.status = ProcessingStatus.FAILED
        state.error = message


class AsyncContext:
    """Async context manager yielding ``value``; stands in for sessions and transactions."""

    def __init__(self, value=None):
        self.value = value

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, *exc_info):
        return False


def make_jsonl(count: int, start: int = 1) -> str:
    """``count`` JSONL lines alternating user/assistant messages."""
    lines = []
    for n in range(start, start + count):
        lines.append(json.dumps({
            "type": "user" if n % 2 else "assistant",
            "timestamp": f"2024-01-01T00:00:{n % 60:02d}Z",
            "message": {"content": f"message {n}"},
        }))
    return "\n".join(lines) + "\n"


@pytest.fixture
def store():
    store = InMemoryRecordStore()
    store.register("file-1")
    return store


@pytest.fixture
def orchestrator(store):
    return IngestionOrchestrator(store, batch_size=100, streaming_threshold=10 * 1024 * 1024, chunk_size=64)


@pytest.fixture
def streaming_orchestrator(store):
    """Orchestrator that streams every source, whatever its size."""
    return IngestionOrchestrator(store, batch_size=100, streaming_threshold=0, chunk_size=64)
