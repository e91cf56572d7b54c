"""Core functionality for the session ingest service."""

from .config import get_settings
from .database import get_db, get_session_maker

__all__ = [
    "get_settings",
    "get_db",
    "get_session_maker",
]
