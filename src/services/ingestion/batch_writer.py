"""Fixed-size batching in front of the record store."""

import logging
from typing import Awaitable, Callable, List, Optional

from .classifier import ParsedRecord
from .store import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class BatchWriter:
    """Buffer parsed records and upsert them in batches.

    ``add`` flushes automatically once ``capacity`` records are pending.
    After every successful flush ``on_flush`` receives the highest line
    number written so far, which the orchestrator records as progress.
    Store errors propagate unchanged; a failed batch stays pending.
    """

    def __init__(
        self,
        store: RecordStore,
        file_id: str,
        capacity: int = DEFAULT_BATCH_SIZE,
        on_flush: Optional[Callable[[int], Awaitable[None]]] = None,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.store = store
        self.file_id = file_id
        self.capacity = capacity
        self.on_flush = on_flush
        self._pending: List[ParsedRecord] = []
        self.flush_count = 0
        self.written = 0
        self.last_flushed_line = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def add(self, record: ParsedRecord) -> None:
        self._pending.append(record)
        if len(self._pending) >= self.capacity:
            await self.flush()

    async def flush(self) -> None:
        """Write pending records; a no-op when nothing is pending."""
        if not self._pending:
            return

        batch = self._pending
        await self.store.upsert_lines(self.file_id, batch)
        self._pending = []

        self.flush_count += 1
        self.written += len(batch)
        self.last_flushed_line = max(self.last_flushed_line, batch[-1].line_number)
        logger.debug(
            f"Flushed {len(batch)} lines for file {self.file_id} "
            f"(through line {self.last_flushed_line})"
        )

        if self.on_flush is not None:
            await self.on_flush(self.last_flushed_line)
