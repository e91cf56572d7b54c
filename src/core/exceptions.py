"""Custom exceptions for the application."""

from typing import Any, Dict, Optional


class BaseAPIException(Exception):
    """Base exception for all API exceptions."""

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BaseAPIException):
    """Raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 404, details)


class BadRequestError(BaseAPIException):
    """Raised when the request is malformed."""

    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, details)


class IngestionError(BaseAPIException):
    """Raised when a session file cannot be ingested.

    Subclasses mark file-level (fatal) failures. Per-line decode failures
    are never raised; they are counted by the pipeline instead.
    """

    def __init__(
        self,
        message: str = "Ingestion failed",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        file_id: Optional[str] = None,
    ):
        full_details = details or {}
        if file_id:
            full_details["file_id"] = file_id
        super().__init__(message, status_code, full_details)
        self.file_id = file_id


class StorageError(IngestionError):
    """Raised when the record store rejects a read or write."""

    def __init__(self, message: str = "Record store operation failed", **kwargs):
        super().__init__(message, 503, **kwargs)


class ContentSourceError(IngestionError):
    """Raised when uploaded content cannot be read or decoded."""

    def __init__(self, message: str = "Content source is unreadable", **kwargs):
        super().__init__(message, 400, **kwargs)


class IngestionTimeoutError(IngestionError):
    """Raised when an ingest run exceeds the configured timeout.

    Batches flushed before the timeout stay stored and the file is left
    in ``processing`` so a retry resumes from the recorded progress.
    """

    def __init__(self, message: str = "Ingestion timed out", **kwargs):
        super().__init__(message, 504, **kwargs)
