from __future__ import annotations

from datetime import date


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(ValidationError):
    """Raised when an attendance attempt does not exist (or is not visible to the caller)."""


class DailyLimitExceeded(ValidationError):
    """Raised when a student already used every attempt allowed for a day."""

    def __init__(self, student_id: str, on_date: date, limit: int):
        super().__init__(
            f"Daily attendance limit exceeded. Maximum {limit} attendance requests per day allowed."
        )
        self.student_id = student_id
        self.date = on_date
        self.limit = limit


class AuthenticationError(DomainError):
    """Raised when no principal is available."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class InvalidStateTransition(DomainError):
    """Raised when a status change would leave a terminal state."""
