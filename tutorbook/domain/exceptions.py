"""
Domain-specific exception hierarchy for the tutoring marketplace.
"""

from typing import Sequence


class TutorbookError(Exception):
    """Base class for all application-level errors."""


class InvalidRangeError(TutorbookError):
    """Raised when a time range is malformed or ends before it starts."""


class SlotOverlapError(InvalidRangeError):
    """Raised when a new availability slot overlaps an existing one on the same day."""


class NotAvailableError(TutorbookError):
    """Raised when a requested time is outside the tutor's declared availability."""


class BookingConflictError(TutorbookError):
    """Raised when a requested time overlaps an existing, non-cancelled session."""

    def __init__(self, message: str, conflicting_ids: Sequence[str] = ()):
        super().__init__(message)
        self.conflicting_ids = list(conflicting_ids)


class BookingValidationError(TutorbookError):
    """Raised when a booking request is inconsistent with the tutor's offering."""


class InvalidTransitionError(TutorbookError):
    """Raised when a status change is not allowed by the transition table."""


class PermissionDeniedError(TutorbookError):
    """Raised when the current user may not perform an action."""


class RepositoryError(TutorbookError):
    """Raised when the storage collaborator fails or cannot find a record."""


class ConcurrentModificationError(RepositoryError):
    """Raised by a repository when a commit loses a race against another writer."""


class PaymentError(TutorbookError):
    """Raised when the payment processor collaborator fails."""
