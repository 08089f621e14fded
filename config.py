"""Configuration management for the shortlink registry."""

from typing import Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    """Application configuration."""

    # Storage settings
    storage_backend: Literal["memory", "file", "redis"] = Field(
        default="memory",
        description="Persistence backend for the record collection"
    )

    storage_path: str = Field(
        default="./data",
        description="Directory used by the file backend"
    )

    storage_key: str = Field(
        default="shortlink:records",
        description="Name of the blob holding the record collection"
    )

    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the redis backend"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=3000,
        description="Port to listen on"
    )

    workers: int = Field(
        default=1,
        ge=1,
        le=1,
        description="Number of uvicorn worker processes. The store lock is per process, so only 1 is supported."
    )

    # Registry settings
    base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL for generating public short URLs"
    )

    path_prefix: str = Field(
        default="",
        description="Path prefix for short URLs (e.g., '/s' for /s/abc123)"
    )

    default_validity_minutes: int = Field(
        default=30,
        ge=1,
        description="Validity applied when a request omits it"
    )

    short_code_length: int = Field(
        default=6,
        ge=3,
        le=20,
        description="Length of generated short codes"
    )

    max_generation_attempts: int = Field(
        default=1000,
        ge=1,
        description="Maximum random draws before giving up on code generation"
    )

    sweep_interval_seconds: int = Field(
        default=300,
        ge=0,
        description="Seconds between expired-record sweeps (0 disables)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
