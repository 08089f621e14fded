"""Common utilities for the shortlink registry."""

from .validators import (
    ValidationResult,
    validate_url,
    validate_short_code,
    validate_validity_minutes,
)
from .url_builder import build_short_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "ValidationResult",
    "validate_url",
    "validate_short_code",
    "validate_validity_minutes",
    "build_short_url",
    "setup_logging",
    "get_logger",
]
