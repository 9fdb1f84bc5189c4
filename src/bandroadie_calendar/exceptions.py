"""
Domain-specific exceptions for the calendar core.

Read paths never raise these across the orchestration boundary; they are
turned into state-level error strings by CalendarService.
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when input validation fails."""


class InvalidDayKeyError(ValidationException):
    """Raised when a day key is not in YYYY-MM-DD form."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Invalid day key: {key!r}",
            code="invalid_day_key",
            details={"key": key},
        )


class NoBandSelectedError(DomainException):
    """Raised when a band-scoped operation runs without a band id."""

    def __init__(
        self, message: str = "No band selected. Cannot perform this operation."
    ) -> None:
        super().__init__(message, code="no_band_selected")


class CalendarFetchError(DomainException):
    """Raised when the calendar load pipeline fails as a whole."""

    def __init__(self, band_id: str, cause: BaseException) -> None:
        super().__init__(
            f"Failed to load events: {cause}",
            code="calendar_fetch_failed",
            details={"band_id": band_id, "cause": type(cause).__name__},
        )
        self.band_id = band_id
        self.cause = cause


class BackendError(Exception):
    """Base error for backend request failures."""


class BackendAuthError(BackendError):
    """Raised when backend rejects authentication."""


class BackendNotFoundError(BackendError):
    """Raised when backend resource is not found."""


class BackendConnectionError(BackendError):
    """Raised when backend connection fails."""


class BackendRequestError(BackendError):
    """Raised for non-auth backend errors."""
