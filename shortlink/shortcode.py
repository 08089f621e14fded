"""Short code generation utilities."""

import logging
import random
import string
from typing import Container, Optional

from .common.logging_config import get_logger
from .errors import CodeSpaceExhausted


class ShortCodeGenerator:
    """Generate random short codes by rejection sampling."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    def __init__(
        self,
        default_length: int = 6,
        max_attempts: int = 1000,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
            max_attempts: Draws allowed before giving up with CodeSpaceExhausted
            rng: Optional random source (seeded in tests)
            logger: Optional logger
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.default_length = default_length
        self.max_attempts = max_attempts
        self.rng = rng or random.SystemRandom()
        self.logger = logger or get_logger("shortcode")

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return "".join(self.rng.choice(self.BASE62_CHARS) for _ in range(length))

    def generate(self, taken: Container[str], length: Optional[int] = None) -> str:
        """Generate a code that is not in ``taken``.

        The caller must hold the store lock while ``taken`` is in use so the
        returned code is still free when it is persisted.

        Args:
            taken: Codes already reserved
            length: Length of the code (uses default if not specified)

        Returns:
            Unique short code

        Raises:
            CodeSpaceExhausted: If no free code was drawn within max_attempts
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate_random(length)
            if code not in taken:
                if attempt > 1:
                    self.logger.debug(f"Generated code after {attempt} attempts: {code}")
                return code

        self.logger.error(f"No free short code after {self.max_attempts} attempts")
        raise CodeSpaceExhausted(
            f"Unable to generate unique short code after {self.max_attempts} attempts",
            {"attempts": self.max_attempts},
        )

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (alphanumeric).

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)
