"""
Log Ingest - Configuration

Single source of truth for runtime configuration.

Required:
  API_TOKEN                 - Shared secret checked by the /logs access guard
  MONGO_URI                 - MongoDB connection string

Storage layout (defaults follow the reference deployment):
  MONGO_DB_NAME             - Database name (default: logs)
  MONGO_LOGCOL              - Log collection (default: docker_logs)
  MONGO_USERSCOL            - User directory collection (default: users)

Behaviour:
  VALIDATE_USER_ID          - true | false, drop records whose user_id is unknown
  MAX_BODY_BYTES            - Request body cap in bytes (default: 5 MB)

Server / environment:
  HOST, PORT                - Listener (default: 0.0.0.0:3000)
  ENVIRONMENT               - dev | staging | prod (default: dev)
  LOG_LEVEL                 - DEBUG | INFO | WARNING | ERROR (default: INFO)
  CORS_ORIGINS              - Comma-separated origins (default: *)

Usage:
    from logingest.config import get_settings

    settings = get_settings()
    print(settings.MONGO_DB_NAME)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_BYTES = 5 * 1024 * 1024


class Settings(BaseSettings):
    """
    Application settings.

    Loads from environment variables with fallback to an env file.
    Set ENV_FILE to point at a different file (defaults to .env).
    """

    model_config = SettingsConfigDict(
        env_file=os.environ.get("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # ACCESS GUARD
    # =========================================================================

    API_TOKEN: str = Field(..., min_length=1, description="Shared secret for /logs")

    # =========================================================================
    # MONGODB
    # =========================================================================

    MONGO_URI: str = Field(..., min_length=1, description="MongoDB connection string")
    MONGO_DB_NAME: str = Field(default="logs", description="Database name")
    MONGO_LOGCOL: str = Field(default="docker_logs", description="Log collection name")
    MONGO_USERSCOL: str = Field(default="users", description="User directory collection name")

    # =========================================================================
    # INGEST BEHAVIOUR
    # =========================================================================

    VALIDATE_USER_ID: bool = Field(
        default=True,
        description="Keep only records whose user_id exists in the user directory",
    )
    MAX_BODY_BYTES: int = Field(
        default=DEFAULT_MAX_BODY_BYTES,
        gt=0,
        description="Maximum accepted request body size in bytes",
    )

    # =========================================================================
    # SERVER & ENVIRONMENT
    # =========================================================================

    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=3000, description="Server port")
    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev", description="Deployment environment"
    )
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    CORS_ORIGINS: str | None = Field(default=None, description="Comma-separated CORS origins")

    @model_validator(mode="before")
    @classmethod
    def _normalize_values(cls, values: Any) -> Any:
        """Strip whitespace/quotes and normalize ENVIRONMENT and LOG_LEVEL spellings."""
        if not isinstance(values, dict):
            return values

        for key, value in list(values.items()):
            if isinstance(value, str):
                values[key] = value.strip().strip('"').strip("'").strip()

        for key in list(values):
            lowered = key.lower()
            if lowered == "environment" and isinstance(values[key], str):
                raw = values[key].lower()
                if raw == "production":
                    logger.warning("ENVIRONMENT='production' is deprecated; use 'prod'.")
                    raw = "prod"
                elif raw == "development":
                    logger.warning("ENVIRONMENT='development' is deprecated; use 'dev'.")
                    raw = "dev"
                values[key] = raw
            elif lowered == "log_level" and isinstance(values[key], str):
                values[key] = values[key].upper()

        return values

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "prod"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "dev"

    @property
    def cors_allowed_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list; wildcard when unset."""
        if self.CORS_ORIGINS:
            origins = []
            for origin in self.CORS_ORIGINS.replace(",", " ").split():
                origin = origin.rstrip("/")
                if origin and origin not in origins:
                    origins.append(origin)
            if origins:
                return origins
        return ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Raises:
        pydantic.ValidationError: If API_TOKEN or MONGO_URI is missing
    """
    return Settings()  # type: ignore[call-arg]


def reset_settings() -> None:
    """Clear the cached settings (for testing)."""
    get_settings.cache_clear()


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure application logging based on settings.

    JSON lines in production, coloured console output elsewhere.
    """
    from .core.logging import configure_structured_logging

    if settings is None:
        settings = get_settings()

    configure_structured_logging(
        level=settings.LOG_LEVEL,
        json_output=settings.is_production,
        service_name="logingest",
    )

    # Quiet noisy loggers
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
