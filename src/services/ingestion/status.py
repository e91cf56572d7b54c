"""Read-only view of file processing state for polling clients."""

from dataclasses import dataclass
from typing import Optional

from .store import RecordStore


@dataclass
class ProcessingStatusReport:
    status: str
    processed_lines: int
    error: Optional[str] = None


class StatusReporter:
    """Report processing status without touching ingestion.

    ``get_status`` returns ``None`` for an unknown file, which callers
    treat as "not found" rather than as any processing status.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_status(self, file_id: str) -> Optional[ProcessingStatusReport]:
        state = await self.store.get_state(file_id)
        if state is None:
            return None
        return ProcessingStatusReport(
            status=state.status,
            processed_lines=state.processed_lines,
            error=state.error,
        )
