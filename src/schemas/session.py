"""Schemas for session uploads, processing status and stored lines."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionUploadRequest(BaseModel):
    """JSON upload of a whole session transcript."""
    project_name: Optional[str] = Field(None, description="Project folder name; defaults to 'default-project'")
    file_name: str = Field(..., min_length=1, description="Session file name, e.g. 'abc123.jsonl'")
    content: str = Field(..., min_length=1, description="Raw JSONL content")


class SessionUploadResponse(BaseModel):
    """Result of an upload and the ingestion it triggered."""
    success: bool
    session_id: str
    processed_lines: int = 0
    new_lines: int = 0
    errors: int = 0
    error: Optional[str] = None


class ProcessingStatusResponse(BaseModel):
    """Current processing state of a session file."""
    session_id: str
    status: str
    processed_lines: int
    error: Optional[str] = None


class SessionFileResponse(BaseModel):
    """Session file details."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_name: str
    session_name: str
    file_name: str
    file_path: Optional[str] = None
    file_size: int
    processing_status: str
    processed_lines: int
    processing_error: Optional[str] = None
    uploaded_at: datetime


class SessionFileListResponse(BaseModel):
    sessions: List[SessionFileResponse]
    total: int


class SessionLineResponse(BaseModel):
    """A stored line of a session file."""
    id: str
    file_id: str
    line_number: int
    content: Optional[Any] = None
    raw_text: str
    message_type: Optional[str] = None
    message_timestamp: Optional[str] = None
    metadata: Optional[Any] = None
    created_at: Optional[str] = None


class SessionLineListResponse(BaseModel):
    lines: List[SessionLineResponse]
    offset: int
    limit: int
