"""SessionLine model: one stored line of a session transcript."""

from sqlalchemy import Column, String, Text, JSON, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from .base import Base


class SessionLine(Base):
    """A parsed JSONL line, unique per (file_id, line_number)."""

    __tablename__ = "session_lines"
    __table_args__ = (
        UniqueConstraint("file_id", "line_number", name="uq_session_lines_file_line"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_id = Column(
        String(36),
        ForeignKey("session_files.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number = Column(Integer, nullable=False)

    content = Column(JSON(none_as_null=True), nullable=True)  # NULL when the line was not valid JSON
    raw_text = Column(Text, nullable=False)
    message_type = Column(Text, nullable=True, index=True)
    message_timestamp = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    line_metadata = Column("metadata", JSON(none_as_null=True), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    session_file = relationship("SessionFile", back_populates="lines")

    def __repr__(self):
        return f"<SessionLine {self.file_id}#{self.line_number} ({self.message_type})>"

    def to_dict(self):
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "file_id": self.file_id,
            "line_number": self.line_number,
            "content": self.content,
            "raw_text": self.raw_text,
            "message_type": self.message_type,
            "message_timestamp": self.message_timestamp,
            "metadata": self.line_metadata,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
