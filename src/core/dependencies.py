"""Common dependencies for FastAPI endpoints."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db


def get_orchestrator(request: Request):
    """Process-scoped ingestion orchestrator created in the app lifespan."""
    return request.app.state.orchestrator


def get_status_reporter(request: Request):
    """Process-scoped status reporter created in the app lifespan."""
    return request.app.state.status_reporter


def get_session_service(
    db: AsyncSession = Depends(get_db),
    orchestrator=Depends(get_orchestrator),
):
    """Request-scoped session upload service."""
    from services.session_service import SessionUploadService
    return SessionUploadService(db, orchestrator)
