"""Service for registering session uploads and reading stored sessions."""

from typing import List, Optional, Tuple, Union
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
import logging

from core.exceptions import NotFoundError
from models import SessionFile, SessionLine, ProcessingStatus
from services.ingestion import IngestionOrchestrator, IngestionResult, ContentSource, as_source
from services.ingestion.sources import Chunk

logger = logging.getLogger(__name__)


class SessionUploadService:
    """Service for session uploads.

    Each uploaded ``.jsonl`` file maps to one ``SessionFile`` row per
    (project, session name). Re-uploading the same file resumes ingestion
    after the lines that were already processed.
    """

    DEFAULT_PROJECT = "default-project"
    SESSION_SUFFIX = ".jsonl"

    def __init__(self, db: AsyncSession, orchestrator: IngestionOrchestrator):
        self.db = db
        self.orchestrator = orchestrator

    @classmethod
    def session_name_for(cls, file_name: str) -> str:
        """Session name is the file name without its ``.jsonl`` suffix."""
        if file_name.endswith(cls.SESSION_SUFFIX):
            return file_name[:-len(cls.SESSION_SUFFIX)]
        return file_name

    async def _find(self, project_name: str, session_name: str) -> Optional[SessionFile]:
        result = await self.db.execute(
            select(SessionFile).where(
                SessionFile.project_name == project_name,
                SessionFile.session_name == session_name,
            )
        )
        return result.scalar_one_or_none()

    async def register_upload(
        self,
        project_name: Optional[str],
        file_name: str,
        file_size: int,
    ) -> SessionFile:
        """Find or create the session row for an upload and mark it pending."""
        project = (project_name or "").strip() or self.DEFAULT_PROJECT
        session_name = self.session_name_for(file_name)
        now = datetime.utcnow()

        session_file = await self._find(project, session_name)
        if session_file is None:
            session_file = SessionFile(
                project_name=project,
                session_name=session_name,
                file_name=file_name,
                file_path=f"{project}/{file_name}",
                file_size=file_size,
                processing_status=ProcessingStatus.PENDING,
                processed_lines=0,
                uploaded_at=now,
            )
            self.db.add(session_file)
            try:
                await self.db.commit()
                logger.info(f"Created session {project}/{session_name} ({session_file.id})")
                return session_file
            except IntegrityError:
                # Created by a concurrent upload of the same session
                await self.db.rollback()
                session_file = await self._find(project, session_name)
                if session_file is None:
                    raise

        session_file.file_name = file_name
        session_file.file_path = f"{project}/{file_name}"
        session_file.file_size = file_size
        session_file.uploaded_at = now
        if session_file.processing_status != ProcessingStatus.PROCESSING:
            session_file.processing_status = ProcessingStatus.PENDING
        await self.db.commit()

        logger.info(
            f"Re-upload of session {project}/{session_name} ({session_file.id}), "
            f"{session_file.processed_lines} lines already processed"
        )
        return session_file

    async def upload(
        self,
        project_name: Optional[str],
        file_name: str,
        content: Union[Chunk, ContentSource],
        file_size: Optional[int] = None,
    ) -> Tuple[str, IngestionResult]:
        """Register an upload and ingest its content."""
        source = as_source(content)
        if file_size is None:
            file_size = source.size or 0

        session_file = await self.register_upload(project_name, file_name, file_size)
        session_id = session_file.id
        result = await self.orchestrator.ingest(source, session_id)
        return session_id, result

    async def get_session(self, session_id: str) -> Optional[SessionFile]:
        result = await self.db.execute(
            select(SessionFile).where(SessionFile.id == session_id)
        )
        return result.scalar_one_or_none()

    async def list_sessions(self, project_name: Optional[str] = None) -> List[SessionFile]:
        """List sessions, newest upload first."""
        query = select(SessionFile)
        if project_name:
            query = query.where(SessionFile.project_name == project_name)
        query = query.order_by(SessionFile.uploaded_at.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_lines(self, session_id: str, offset: int = 0, limit: int = 100) -> List[SessionLine]:
        """Stored lines of a session ordered by line number."""
        if await self.get_session(session_id) is None:
            raise NotFoundError(f"Session {session_id} not found")

        result = await self.db.execute(
            select(SessionLine)
            .where(SessionLine.file_id == session_id)
            .order_by(SessionLine.line_number)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())
