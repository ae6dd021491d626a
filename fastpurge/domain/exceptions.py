"""Exceptions raised by the purge domain.

Everything here is fatal to a run. Delivery failures of individual chunks are
not exceptions: they are reported through DeliveryResult and the logs.
"""

from typing import Optional


class FastPurgeError(Exception):
    """Base class for all fastpurge errors."""


class ConfigValidationError(FastPurgeError):
    """Raised when a PurgeConfig violates one of the validation rules."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class CredentialError(FastPurgeError):
    """Raised when the edgerc file or section cannot be loaded."""


class MalformedInputError(FastPurgeError):
    """Raised when the invalidation list cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class SigningError(FastPurgeError):
    """Raised when an outbound request cannot be signed. Never retried."""
