"""Service layer for business logic."""

from .session_service import SessionUploadService

__all__ = [
    "SessionUploadService",
]
