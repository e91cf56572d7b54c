"""SessionFile model: one uploaded JSONL session and its processing state."""

from sqlalchemy import Column, String, Text, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from .base import Base, TimestampMixin, UUIDMixin


class ProcessingStatus:
    """Allowed values of ``SessionFile.processing_status``."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SessionFile(UUIDMixin, TimestampMixin, Base):
    """An uploaded session transcript, keyed by project and session name."""

    __tablename__ = "session_files"
    __table_args__ = (
        UniqueConstraint("project_name", "session_name", name="uq_session_files_project_session"),
    )

    project_name = Column(String(255), nullable=False, index=True)
    session_name = Column(String(255), nullable=False)

    # File metadata
    file_name = Column(String(500), nullable=False)
    file_path = Column(Text, nullable=True)
    file_size = Column(Integer, nullable=False, default=0)  # bytes

    # Processing state
    processing_status = Column(String(20), nullable=False, default=ProcessingStatus.PENDING)
    processed_lines = Column(Integer, nullable=False, default=0)
    processing_error = Column(Text, nullable=True)

    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    lines = relationship(
        "SessionLine",
        back_populates="session_file",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    def __repr__(self):
        return f"<SessionFile {self.project_name}/{self.session_name} ({self.processing_status})>"
