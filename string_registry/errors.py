"""Domain errors raised by the registry core.

Every error carries the HTTP status it maps to, so the API layer can turn
any ``RegistryError`` into a response with a single exception handler.
"""
from typing import Any, Optional


class RegistryError(Exception):
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(RegistryError, TypeError):
    """Submitted value has the wrong shape or type."""
    status_code = 422


class AlreadyExists(RegistryError, ValueError):
    """A record with the same content hash is already stored."""
    status_code = 409


class NotFound(RegistryError, LookupError):
    status_code = 404


class FilterValidationError(RegistryError, ValueError):
    """One or more structured filter parameters are malformed.

    ``details`` maps each failing parameter name to the reason it failed.
    """
    status_code = 400


class UnparsableQuery(RegistryError, ValueError):
    status_code = 400


class ConflictingQuery(RegistryError, ValueError):
    status_code = 422
