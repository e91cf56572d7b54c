"""Record store used by the ingestion pipeline.

The pipeline only talks to :class:`RecordStore`. The production
implementation writes through SQLAlchemy to PostgreSQL, committing every
call in its own short transaction so that progress written during a long
ingest is visible to status pollers straight away.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import NotFoundError, StorageError
from models.session_file import ProcessingStatus, SessionFile
from models.session_line import SessionLine

from .classifier import ParsedRecord

logger = logging.getLogger(__name__)

# Columns overwritten when a (file_id, line_number) row already exists
UPSERT_COLUMNS = ("content", "raw_text", "message_type", "message_timestamp", "metadata")


@dataclass
class FileState:
    """Persisted processing state of one file."""
    file_id: str
    status: str
    processed_lines: int
    error: Optional[str] = None


class RecordStore(ABC):
    """Durable storage for session lines and file processing state."""

    @abstractmethod
    async def upsert_lines(self, file_id: str, records: Sequence[ParsedRecord]) -> int:
        """Insert or overwrite rows keyed by (file_id, line_number)."""

    @abstractmethod
    async def get_state(self, file_id: str) -> Optional[FileState]:
        """Processing state, or ``None`` when the file is unknown."""

    @abstractmethod
    async def start_processing(self, file_id: str, processed_lines: int) -> None:
        """Move the file to ``processing`` and clear any previous error."""

    @abstractmethod
    async def update_progress(self, file_id: str, processed_lines: int) -> None:
        """Record how many lines have been handled so far."""

    @abstractmethod
    async def complete(self, file_id: str, processed_lines: int) -> None:
        """Move the file to ``completed`` with its final line count."""

    @abstractmethod
    async def fail(self, file_id: str, message: str) -> None:
        """Move the file to ``failed`` with an error message."""


class SqlAlchemyRecordStore(RecordStore):
    """PostgreSQL-backed store built on an async session maker."""

    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _transaction(self, operation: str, file_id: str):
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            # asyncpg connection failures surface as OSError/TimeoutError, not SQLAlchemyError
            logger.error(f"Record store {operation} failed for file {file_id}: {e}")
            raise StorageError(f"{operation} failed: {e}", file_id=file_id) from e

    @staticmethod
    def build_upsert(file_id: str, records: Sequence[ParsedRecord]) -> Any:
        """Bulk INSERT .. ON CONFLICT (file_id, line_number) DO UPDATE."""
        table = SessionLine.__table__
        rows = []
        for record in records:
            row = record.to_row(file_id)
            row["id"] = str(uuid.uuid4())
            rows.append(row)

        stmt = pg_insert(table).values(rows)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.file_id, table.c.line_number],
            set_={name: stmt.excluded[name] for name in UPSERT_COLUMNS},
        )

    async def upsert_lines(self, file_id: str, records: Sequence[ParsedRecord]) -> int:
        if not records:
            return 0
        async with self._transaction("upsert_lines", file_id) as session:
            await session.execute(self.build_upsert(file_id, records))
        return len(records)

    async def get_state(self, file_id: str) -> Optional[FileState]:
        async with self._transaction("get_state", file_id) as session:
            result = await session.execute(
                select(
                    SessionFile.processing_status,
                    SessionFile.processed_lines,
                    SessionFile.processing_error,
                ).where(SessionFile.id == file_id)
            )
            row = result.first()
        if row is None:
            return None
        return FileState(
            file_id=file_id,
            status=row.processing_status or ProcessingStatus.PENDING,
            processed_lines=row.processed_lines or 0,
            error=row.processing_error,
        )

    async def _update_file(self, operation: str, file_id: str, session: AsyncSession, **values) -> None:
        result = await session.execute(
            update(SessionFile)
            .where(SessionFile.id == file_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Session file {file_id} not found", details={"operation": operation})

    async def start_processing(self, file_id: str, processed_lines: int) -> None:
        async with self._transaction("start_processing", file_id) as session:
            await self._update_file(
                "start_processing",
                file_id,
                session,
                processing_status=ProcessingStatus.PROCESSING,
                processed_lines=processed_lines,
                processing_error=None,
            )

    async def update_progress(self, file_id: str, processed_lines: int) -> None:
        async with self._transaction("update_progress", file_id) as session:
            await self._update_file(
                "update_progress",
                file_id,
                session,
                processed_lines=processed_lines,
            )

    async def complete(self, file_id: str, processed_lines: int) -> None:
        async with self._transaction("complete", file_id) as session:
            await self._update_file(
                "complete",
                file_id,
                session,
                processing_status=ProcessingStatus.COMPLETED,
                processed_lines=processed_lines,
                processing_error=None,
            )

    async def fail(self, file_id: str, message: str) -> None:
        async with self._transaction("fail", file_id) as session:
            await self._update_file(
                "fail",
                file_id,
                session,
                processing_status=ProcessingStatus.FAILED,
                processing_error=message,
            )
