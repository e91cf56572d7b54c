"""Database models for the session ingest service."""

from .base import Base
from .session_file import SessionFile, ProcessingStatus
from .session_line import SessionLine

__all__ = [
    "Base",
    "SessionFile",
    "ProcessingStatus",
    "SessionLine",
]
