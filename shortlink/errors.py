"""Error taxonomy for the shortlink registry."""

from typing import Optional


class RegistryError(Exception):
    """Base class for all registry errors."""

    code = "registry_error"

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        """Convert to a serializable dictionary."""
        return {"error": self.code, "message": self.message, **self.detail}


class ValidationError(RegistryError):
    """A request was rejected before anything was persisted."""

    code = "validation_error"


class InvalidUrl(ValidationError):
    code = "invalid_url"


class UnsupportedProtocol(ValidationError):
    code = "unsupported_protocol"


class InvalidShortCodeFormat(ValidationError):
    code = "invalid_short_code_format"


class ShortCodeTaken(ValidationError):
    code = "short_code_taken"


class InvalidValidityPeriod(ValidationError):
    code = "invalid_validity_period"


class CodeSpaceExhausted(RegistryError):
    """No free short code was found within the retry bound."""

    code = "code_space_exhausted"


class NotFound(RegistryError):
    code = "not_found"


class PersistenceError(RegistryError):
    """The persistence backend failed to read or write the collection."""

    code = "persistence_error"
