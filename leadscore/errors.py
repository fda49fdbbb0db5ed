"""
leadscore/errors.py — Exception taxonomy for the scoring core.

The HTTP layer translates these into HTTPException responses; nothing in
the core imports FastAPI.
"""

from typing import Any, Optional


class LeadScoreError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ClassificationError(LeadScoreError):
    """The remote intent classifier failed on every attempt."""

    def __init__(self, message: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(
            message,
            details={
                "attempts": attempts,
                "last_error": str(last_error) if last_error else None,
            },
        )
        self.attempts = attempts
        self.last_error = last_error


class EmptyResponseError(LeadScoreError):
    """The model answered with nothing but whitespace."""


class ClassifierNotConfiguredError(LeadScoreError):
    """No API key is configured for the remote classifier."""


class MissingOfferError(LeadScoreError):
    """Scoring was requested before an offer was submitted."""


class MissingProspectsError(LeadScoreError):
    """Scoring was requested before any prospects were uploaded."""


class CsvFormatError(LeadScoreError):
    """Uploaded CSV cannot be read, lacks required columns, or is too large."""


class StoreError(LeadScoreError):
    """A store invariant would be violated by the requested write."""
