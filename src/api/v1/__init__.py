"""
API v1 router.

Session ingestion endpoints; health is mounted at the application root.
"""

from fastapi import APIRouter

from .endpoints import sessions

api_router = APIRouter()

api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
