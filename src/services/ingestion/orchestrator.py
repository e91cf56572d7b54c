"""Ingestion orchestrator: the entry point of the session pipeline.

Drives one file through ``processing`` to ``completed`` or ``failed``::

    pending/completed/failed -> processing -> completed
                                          \\-> failed

Small content (at or below the streaming threshold) is parsed from
memory; larger or unsized content is streamed in chunks. Both paths share
the same parser and batch writer, so the stored rows are identical.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from functools import partial
from typing import Any, Dict, Optional, Union

from core.config import get_settings
from core.exceptions import BadRequestError, IngestionError, IngestionTimeoutError, NotFoundError

from .batch_writer import BatchWriter
from .parser import StreamingParser
from .sources import Chunk, ContentSource, as_source
from .store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Outcome of one ``ingest`` call.

    ``processed_lines`` is the file's total processed-line count after the
    run; ``new_lines`` and ``errors`` only cover lines written by this run.
    """
    success: bool
    processed_lines: int = 0
    new_lines: int = 0
    errors: int = 0
    error: Optional[str] = None
    mode: str = "buffered"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IngestionOrchestrator:
    """Ingest JSONL session files into a :class:`RecordStore`."""

    BUFFERED = "buffered"
    STREAMING = "streaming"

    def __init__(
        self,
        store: RecordStore,
        batch_size: Optional[int] = None,
        streaming_threshold: Optional[int] = None,
        chunk_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.store = store
        self.batch_size = batch_size or settings.INGEST_BATCH_SIZE
        self.streaming_threshold = (
            streaming_threshold
            if streaming_threshold is not None
            else settings.INGEST_STREAMING_THRESHOLD_BYTES
        )
        self.chunk_size = chunk_size or settings.INGEST_STREAM_CHUNK_SIZE
        self.timeout = timeout if timeout is not None else settings.INGEST_TIMEOUT_SECONDS

        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def select_mode(self, size: Optional[int]) -> str:
        """Buffered at or below the threshold; streaming above it or when unsized."""
        if size is not None and size <= self.streaming_threshold:
            return self.BUFFERED
        return self.STREAMING

    async def resume_offset(self, file_id: str) -> int:
        """Lines already processed for ``file_id``, from its persisted state."""
        state = await self.store.get_state(file_id)
        if state is None:
            raise NotFoundError(f"Session file {file_id} not found")
        return state.processed_lines

    @asynccontextmanager
    async def _file_lock(self, file_id: str):
        # Runs for the same file are serialized; the lock is dropped once unused
        lock = self._locks.setdefault(file_id, asyncio.Lock())
        self._lock_users[file_id] = self._lock_users.get(file_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[file_id] -= 1
            if not self._lock_users[file_id]:
                del self._lock_users[file_id]
                del self._locks[file_id]

    async def ingest(
        self,
        content: Union[Chunk, ContentSource],
        file_id: str,
        resume_from_line: Optional[int] = None,
    ) -> IngestionResult:
        """Parse ``content`` and store every line after ``resume_from_line``.

        When ``resume_from_line`` is omitted it is read from the file's
        persisted ``processed_lines``. Storage and content failures mark the
        file ``failed`` and return ``success=False``. A timeout raises
        :class:`IngestionTimeoutError` and leaves the file ``processing``.
        """
        source = as_source(content)

        async with self._file_lock(file_id):
            if resume_from_line is None:
                resume_from_line = await self.resume_offset(file_id)
            if resume_from_line < 0:
                raise BadRequestError("resume_from_line must be >= 0")

            mode = self.select_mode(source.size)
            logger.info(
                f"Ingesting file {file_id}: {source.size if source.size is not None else 'unknown'} bytes, "
                f"{mode} mode, resuming after line {resume_from_line}"
            )

            run = self._run(source, file_id, resume_from_line, mode)
            if not self.timeout:
                return await run
            try:
                return await asyncio.wait_for(run, timeout=self.timeout)
            except asyncio.TimeoutError as e:
                logger.warning(
                    f"Ingestion of file {file_id} timed out after {self.timeout}s; "
                    "flushed batches are kept and the file stays in processing"
                )
                raise IngestionTimeoutError(
                    f"Ingestion timed out after {self.timeout} seconds", file_id=file_id
                ) from e

    async def _run(
        self,
        source: ContentSource,
        file_id: str,
        resume_from_line: int,
        mode: str,
    ) -> IngestionResult:
        parser = StreamingParser(resume_from_line)
        writer = BatchWriter(
            self.store,
            file_id,
            capacity=self.batch_size,
            on_flush=partial(self.store.update_progress, file_id),
        )

        try:
            await self.store.start_processing(file_id, resume_from_line)

            if mode == self.BUFFERED:
                stats = await parser.parse_text(await source.read_text(), writer.add)
            else:
                stats = await parser.parse_chunks(source.stream(self.chunk_size), writer.add)
            await writer.flush()

            processed_lines = max(stats.total_lines, resume_from_line)
            await self.store.complete(file_id, processed_lines)
        except IngestionError as e:
            return await self._fail(file_id, e, parser, writer, resume_from_line, mode)

        logger.info(
            f"Ingested file {file_id}: {stats.total_lines} lines total, "
            f"{stats.new_lines} new, {stats.errors} not valid JSON, "
            f"{writer.flush_count} batches"
        )
        return IngestionResult(
            success=True,
            processed_lines=processed_lines,
            new_lines=stats.new_lines,
            errors=stats.errors,
            mode=mode,
        )

    async def _fail(
        self,
        file_id: str,
        error: IngestionError,
        parser: StreamingParser,
        writer: BatchWriter,
        resume_from_line: int,
        mode: str,
    ) -> IngestionResult:
        logger.error(f"Ingestion of file {file_id} failed: {error.message}")
        try:
            await self.store.fail(file_id, error.message)
        except IngestionError as e:
            logger.error(f"Could not mark file {file_id} as failed: {e.message}")

        return IngestionResult(
            success=False,
            processed_lines=max(writer.last_flushed_line, resume_from_line),
            new_lines=parser.stats.new_lines,
            errors=parser.stats.errors,
            error=error.message,
            mode=mode,
        )
