"""Error taxonomy for the copy generator.

Every failure the core can hit is one of these. Each carries an HTTP status
and a ``details`` mapping of camelCase diagnostics that the HTTP shell merges
into the error body, so the operator can fix the data and try again:

    ConfigurationError  500  master guide / credentials / password not set
    NotFoundError       404  casino not in the template store
    ValidationError     422  missing tone, references, day markers, bad input
    ModelError          502  model transport failure or empty response
    StoreError          502  template store unreachable or returned an error
    AuthError           401  wrong access password

Messages are written in Portuguese (the operators' language).
"""

from __future__ import annotations

from typing import Any


class CopyError(Exception):
    """Base class for every error surfaced to the caller."""

    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        body.update(self.details)
        return body


class ConfigurationError(CopyError):
    status_code = 500


class NotFoundError(CopyError):
    status_code = 404


class ValidationError(CopyError):
    status_code = 422


class ModelError(CopyError):
    """Raised when the model backend cannot be reached or returns nothing usable."""

    status_code = 502


class StoreError(CopyError):
    """Raised when the template store cannot be queried."""

    status_code = 502


class AuthError(CopyError):
    status_code = 401
