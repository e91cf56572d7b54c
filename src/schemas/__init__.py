"""Pydantic schemas for the session ingest API."""

from .common import HealthResponse
from .session import (
    SessionUploadRequest,
    SessionUploadResponse,
    ProcessingStatusResponse,
    SessionFileResponse,
    SessionFileListResponse,
    SessionLineResponse,
    SessionLineListResponse,
)

__all__ = [
    "HealthResponse",
    "SessionUploadRequest",
    "SessionUploadResponse",
    "ProcessingStatusResponse",
    "SessionFileResponse",
    "SessionFileListResponse",
    "SessionLineResponse",
    "SessionLineListResponse",
]
