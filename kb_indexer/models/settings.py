"""Settings and configuration management."""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kb_indexer.models.indexing import SourceIndexType


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Knowledge Base API
    rag_api_url: str = Field(
        "http://localhost:3001", description="Base URL of the knowledge-base API"
    )
    rag_request_timeout: Optional[float] = Field(
        None,
        ge=5.0,
        le=600.0,
        description="Knowledge-base API request timeout in seconds (unset: no timeout)",
    )
    default_user_agent: str = Field(
        "Newsletter-KB-Indexer/1.0",
        min_length=5,
        max_length=100,
        description="Default User-Agent for HTTP requests",
    )

    # Indexing
    default_source_type: SourceIndexType = Field(
        SourceIndexType.TRENDING, description="Source type used when none is given"
    )

    # Application Settings
    debug: bool = Field(False, description="Debug mode")
    log_level: str = Field("INFO", description="Log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize the log level and reject unknown names."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("rag_api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
