"""Session upload, status and line endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from core.config import get_settings
from core.dependencies import get_session_service, get_status_reporter
from core.exceptions import BaseAPIException
from schemas.session import (
    ProcessingStatusResponse,
    SessionFileListResponse,
    SessionFileResponse,
    SessionLineListResponse,
    SessionLineResponse,
    SessionUploadRequest,
    SessionUploadResponse,
)
from services.ingestion import ChunkedSource, StatusReporter
from services.ingestion.sources import utf8_size
from services.session_service import SessionUploadService

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(session_id: str, result) -> SessionUploadResponse:
    return SessionUploadResponse(
        success=result.success,
        session_id=session_id,
        processed_lines=result.processed_lines,
        new_lines=result.new_lines,
        errors=result.errors,
        error=result.error,
    )


async def _upload(service: SessionUploadService, project_name, file_name, content, file_size=None):
    try:
        session_id, result = await service.upload(project_name, file_name, content, file_size=file_size)
    except BaseAPIException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _to_response(session_id, result)


@router.post("/upload", response_model=SessionUploadResponse)
async def upload_session(
    request: SessionUploadRequest,
    service: SessionUploadService = Depends(get_session_service),
):
    """Upload a session transcript as JSON and ingest it.

    Re-uploading a grown transcript only stores the lines added since the
    previous upload.
    """
    settings = get_settings()
    content_size = utf8_size(request.content)
    if content_size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Max size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB",
        )

    logger.info(
        f"Session upload: {request.project_name or SessionUploadService.DEFAULT_PROJECT}/"
        f"{request.file_name} ({content_size} bytes)"
    )
    return await _upload(service, request.project_name, request.file_name, request.content)


@router.post("/upload-file", response_model=SessionUploadResponse)
async def upload_session_file(
    file: UploadFile = File(...),
    project_name: Optional[str] = Form(None),
    service: SessionUploadService = Depends(get_session_service),
):
    """Upload a session transcript as a multipart file.

    Large files are streamed through the pipeline chunk by chunk.
    """
    settings = get_settings()
    if not file.filename:
        raise HTTPException(status_code=400, detail="Missing file name")
    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Max size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB",
        )

    logger.info(f"Session file upload: {file.filename} ({file.size} bytes)")
    source = ChunkedSource.from_upload(file, settings.INGEST_STREAM_CHUNK_SIZE)
    return await _upload(service, project_name, file.filename, source, file_size=file.size)


@router.get("", response_model=SessionFileListResponse)
async def list_sessions(
    project_name: Optional[str] = Query(None),
    service: SessionUploadService = Depends(get_session_service),
):
    """List uploaded sessions."""
    sessions = await service.list_sessions(project_name)
    return SessionFileListResponse(
        sessions=[SessionFileResponse.model_validate(s) for s in sessions],
        total=len(sessions),
    )


@router.get("/{session_id}/status", response_model=ProcessingStatusResponse)
async def get_processing_status(
    session_id: str,
    reporter: StatusReporter = Depends(get_status_reporter),
):
    """Current processing status of a session, for polling clients."""
    try:
        report = await reporter.get_status(session_id)
    except BaseAPIException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if report is None:
        raise HTTPException(status_code=404, detail="Session not found")

    return ProcessingStatusResponse(
        session_id=session_id,
        status=report.status,
        processed_lines=report.processed_lines,
        error=report.error,
    )


@router.get("/{session_id}/lines", response_model=SessionLineListResponse)
async def list_session_lines(
    session_id: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: SessionUploadService = Depends(get_session_service),
):
    """Stored lines of a session, ordered by line number."""
    try:
        lines = await service.list_lines(session_id, offset=offset, limit=limit)
    except BaseAPIException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return SessionLineListResponse(
        lines=[SessionLineResponse(**line.to_dict()) for line in lines],
        offset=offset,
        limit=limit,
    )
