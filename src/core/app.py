"""
Session Ingest - Core Application

This module provides the FastAPI application that accepts session
transcripts and exposes their processing status.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import time

from .config import get_settings
from .database import init_db, close_db, get_session_maker

# Configure logging
logger = logging.getLogger(__name__)


class SessionIngestApp:
    """Application wrapper that owns the pipeline's process-scoped objects."""

    def __init__(self):
        """Initialize the application."""
        self.settings = get_settings()
        self.app = None
        self._create_app()

    def _create_app(self):
        """Create the FastAPI application instance."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            """Application lifespan manager."""
            # Startup
            logger.info(f"Starting {self.settings.PROJECT_NAME} v{self.settings.VERSION}")

            await init_db()
            logger.info("Database initialized")

            self._init_pipeline(app)
            logger.info(
                f"Ingestion pipeline ready (batch size {self.settings.INGEST_BATCH_SIZE}, "
                f"streaming above {self.settings.INGEST_STREAMING_THRESHOLD_BYTES} bytes)"
            )

            yield

            # Shutdown
            await close_db()
            logger.info("Database connections closed")

        self.app = FastAPI(
            title=self.settings.PROJECT_NAME,
            description="Ingests AI assistant session transcripts (JSONL) for the team dashboard",
            version=self.settings.VERSION,
            openapi_url=f"{self.settings.API_V1_STR}/openapi.json",
            docs_url=f"{self.settings.API_V1_STR}/docs",
            redoc_url=f"{self.settings.API_V1_STR}/redoc",
            lifespan=lifespan,
        )

        self._add_middleware()
        self._add_routes()

    def _init_pipeline(self, app: FastAPI):
        """Create the record store, orchestrator and status reporter."""
        from services.ingestion import (
            IngestionOrchestrator,
            SqlAlchemyRecordStore,
            StatusReporter,
        )

        store = SqlAlchemyRecordStore(get_session_maker())
        app.state.record_store = store
        app.state.orchestrator = IngestionOrchestrator(
            store,
            batch_size=self.settings.INGEST_BATCH_SIZE,
            streaming_threshold=self.settings.INGEST_STREAMING_THRESHOLD_BYTES,
            chunk_size=self.settings.INGEST_STREAM_CHUNK_SIZE,
            timeout=self.settings.INGEST_TIMEOUT_SECONDS,
        )
        app.state.status_reporter = StatusReporter(store)

    def _add_middleware(self):
        """Add middleware to the application."""
        # CORS: include FRONTEND_URL so non-localhost deployments work
        cors_origins = list(self.settings.BACKEND_CORS_ORIGINS)
        frontend = self.settings.FRONTEND_URL.rstrip("/")
        if frontend and frontend not in cors_origins:
            cors_origins.append(frontend)

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.middleware("http")
        async def add_process_time_header(request, call_next):
            start_time = time.time()
            response = await call_next(request)
            response.headers["X-Process-Time"] = str(time.time() - start_time)
            return response

    def _add_routes(self):
        """Add routes to the application."""
        @self.app.get("/")
        async def root():
            return {
                "name": self.settings.PROJECT_NAME,
                "version": self.settings.VERSION,
                "docs": f"{self.settings.API_V1_STR}/docs",
            }

        from api.v1.endpoints import health
        from api.v1 import api_router

        self.app.include_router(health.router, tags=["health"])
        self.app.include_router(api_router, prefix=self.settings.API_V1_STR)

    def get_app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self.app


def create_app() -> FastAPI:
    """Create and return the FastAPI application."""
    app_instance = SessionIngestApp()
    return app_instance.get_app()
