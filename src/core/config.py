"""Configuration management using Pydantic settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, PostgresDsn, computed_field
import os


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Session Ingest"
    VERSION: str = "1.0.0"

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )
    FRONTEND_URL: str = Field(default="http://localhost:3000")

    # Database
    POSTGRES_SERVER: str = Field(default="localhost")
    POSTGRES_USER: str = Field(default="sessions")
    POSTGRES_PASSWORD: str = Field(default="local_dev_password")
    POSTGRES_DB: str = Field(default="session_ingest")
    POSTGRES_PORT: int = Field(default=5432)

    @computed_field
    @property
    def DATABASE_URL(self) -> PostgresDsn | str:
        """Construct database URL from components."""
        # SQLALCHEMY_DATABASE_URI bypasses Pydantic validation (Unix socket paths)
        sqlalchemy_uri = os.getenv("SQLALCHEMY_DATABASE_URI")
        if sqlalchemy_uri:
            return sqlalchemy_uri

        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    # Ingestion pipeline
    INGEST_BATCH_SIZE: int = Field(default=100, ge=1)
    INGEST_STREAMING_THRESHOLD_BYTES: int = Field(default=10 * 1024 * 1024, ge=0)
    INGEST_STREAM_CHUNK_SIZE: int = Field(default=64 * 1024, ge=1)
    INGEST_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="Upper bound for a single ingest run; unset means no timeout",
    )
    MAX_UPLOAD_SIZE: int = Field(default=200 * 1024 * 1024)  # bytes

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Environment settings
    ENVIRONMENT: str = Field(default="development")

    # Performance
    MAX_CONNECTIONS_COUNT: int = Field(default=10)


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()


_settings = None

def get_cached_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
