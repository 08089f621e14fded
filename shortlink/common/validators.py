"""Validation utilities for the shortlink registry.

All checks here are purely syntactic and perform no I/O. Uniqueness of a
short code is checked against a caller-supplied collection of taken codes.
"""

import re
from dataclasses import dataclass
from typing import Any, Container, Optional
from urllib.parse import urlparse

from ..errors import (
    InvalidShortCodeFormat,
    InvalidUrl,
    InvalidValidityPeriod,
    ShortCodeTaken,
    UnsupportedProtocol,
    ValidationError,
)

MAX_URL_LENGTH = 2048
SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{3,20}$")
ALLOWED_SCHEMES = ("http", "https")
# Letters and digits (any script) plus the punctuation RFC 3986 allows in a host
HOST_PATTERN = re.compile(r"^[\w.~%!$&'()*+,;=:-]+$")


@dataclass
class ValidationResult:
    """Outcome of a single validation check."""

    is_valid: bool
    error: Optional[ValidationError] = None

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def fail(cls, error: ValidationError) -> "ValidationResult":
        return cls(is_valid=False, error=error)


def validate_url(raw: Optional[str]) -> ValidationResult:
    """Validate an original URL.

    Args:
        raw: The URL to validate

    Returns:
        ValidationResult; the error is InvalidUrl or UnsupportedProtocol
    """
    if not raw or not isinstance(raw, str) or not raw.strip():
        return ValidationResult.fail(InvalidUrl("URL is required"))

    if len(raw) > MAX_URL_LENGTH:
        return ValidationResult.fail(
            InvalidUrl(f"URL is too long (max {MAX_URL_LENGTH} characters)")
        )

    try:
        result = urlparse(raw.strip())
        # Raises for a non-numeric or out-of-range port
        result.port
    except ValueError as e:
        return ValidationResult.fail(InvalidUrl(f"Invalid URL format: {e}"))

    if not result.scheme:
        return ValidationResult.fail(InvalidUrl("Invalid URL format"))

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return ValidationResult.fail(
            UnsupportedProtocol(
                "URL must use HTTP or HTTPS protocol",
                {"scheme": result.scheme},
            )
        )

    if not result.hostname or not HOST_PATTERN.match(result.hostname):
        return ValidationResult.fail(InvalidUrl("URL must have a valid domain"))

    return ValidationResult.ok()


def validate_short_code(
    code: Optional[str],
    taken: Container[str] = (),
) -> ValidationResult:
    """Validate a caller-supplied short code.

    An empty code is valid and means the caller wants a generated one.

    Args:
        code: The short code to validate
        taken: Codes already reserved by stored records, expired or not

    Returns:
        ValidationResult; the error is InvalidShortCodeFormat or ShortCodeTaken
    """
    if not code:
        return ValidationResult.ok()

    if not isinstance(code, str) or not SHORT_CODE_PATTERN.match(code):
        return ValidationResult.fail(
            InvalidShortCodeFormat("Short code must be 3-20 alphanumeric characters")
        )

    if code in taken:
        return ValidationResult.fail(
            ShortCodeTaken("Short code already exists", {"short_code": code})
        )

    return ValidationResult.ok()


def validate_validity_minutes(value: Any) -> ValidationResult:
    """Validate an optional validity period; None means use the default."""
    if value is None:
        return ValidationResult.ok()

    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return ValidationResult.fail(
            InvalidValidityPeriod(
                "Validity must be a positive whole number of minutes",
                {"validity_minutes": value},
            )
        )

    return ValidationResult.ok()
