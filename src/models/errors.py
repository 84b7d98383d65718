"""
Error hierarchy for the daily edition platform.

Each error carries the HTTP status it maps to so the API layer can translate
it into an ``{"error": ...}`` response without knowing every subclass.
"""

from typing import Optional


class EditionError(Exception):
    """Base class for known application errors"""

    status_code: int = 500

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class AuthorizationError(EditionError):
    """Missing, invalid or expired administrator credential"""

    status_code = 401


class EditionValidationError(EditionError):
    """Caller supplied incomplete or malformed publish/query input"""

    status_code = 400


class ImageCompressionError(EditionValidationError):
    """Uploaded photo could not be turned into a storable JPEG"""


class PersistenceError(EditionError):
    """The edition store is unavailable or rejected a write"""

    status_code = 500


class ContentSourceError(EditionError):
    """An external content source failed or returned an unusable payload.

    Raised inside adapters only; ``UniversalContentSource`` absorbs it and
    substitutes the adapter fallback.
    """

    status_code = 500
