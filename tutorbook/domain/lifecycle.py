"""
Allowed status transitions for sessions and payments.
"""

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from .base import utcnow
from .enums import PaymentStatus, SessionStatus
from .exceptions import InvalidTransitionError
from .models import Payment, TutoringSession

SESSION_TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.PENDING: frozenset({SessionStatus.CONFIRMED, SessionStatus.CANCELLED}),
    SessionStatus.CONFIRMED: frozenset({SessionStatus.IN_PROGRESS, SessionStatus.CANCELLED}),
    SessionStatus.IN_PROGRESS: frozenset({SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.CANCELLED: frozenset(),
}

_PROCESSED_STATUSES = {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.REFUNDED}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in SESSION_TRANSITIONS[current]


def transition_session(session: TutoringSession, status: SessionStatus) -> TutoringSession:
    """
    Return a copy of the session in the new status.

    Raises:
        InvalidTransitionError: If the table does not allow the change
    """
    if not can_transition(session.status, status):
        raise InvalidTransitionError(
            f"Session {session.id} cannot move from {session.status.value} to {status.value}"
        )
    return session.model_copy(update={"status": status})


def mark_payment(
    payment: Payment,
    status: PaymentStatus,
    processed_at: Optional[datetime] = None,
) -> Payment:
    """Return a copy of the payment in the new status, stamping settled payments."""
    update: Dict[str, object] = {"status": status}
    if status in _PROCESSED_STATUSES:
        update["processed_at"] = processed_at or utcnow()
    return payment.model_copy(update=update)
