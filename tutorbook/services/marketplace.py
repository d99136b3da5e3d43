"""
Application service for the tutoring marketplace.

The service coordinates the storage, payment and identity collaborators and
delegates every rule to the domain layer. Collaborators are described as
protocols, so the in-memory adapters and test stubs plug in the same way a
real backend would.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import List, Optional, Protocol, Tuple, Union

import pendulum

from ..config import AppConfig
from ..domain.availability import TimeSlot
from ..domain.booking import BookingEngine, BookingRequest
from ..domain.earnings import (
    RECENT_PAYMENTS_LIMIT,
    EarningsPeriod,
    EarningsSummary,
    recent_payments,
    summarize_earnings,
)
from ..domain.enums import (
    DayOfWeek,
    MessageType,
    PaymentStatus,
    SessionDuration,
    SessionStatus,
    UserType,
)
from ..domain.exceptions import (
    BookingConflictError,
    BookingValidationError,
    ConcurrentModificationError,
    InvalidTransitionError,
    PaymentError,
    PermissionDeniedError,
    RepositoryError,
    TutorbookError,
)
from ..domain.lifecycle import can_transition, mark_payment, transition_session
from ..domain.messaging import compose_message, conversation_id_for, mark_read, record_message, start_conversation
from ..domain.models import ChargeResult, Conversation, Message, Payment, Tutor, TutoringSession
from ..domain.pricing import Quote, quote
from ..domain.search import Coordinates, TutorSearchFilter, search_tutors

logger = logging.getLogger(__name__)

Entity = Union[TutoringSession, Payment, Tutor, Conversation, Message]


class IdentityProvider(Protocol):
    """Who is making the call."""

    @property
    def current_user_id(self) -> str: ...

    @property
    def current_user_type(self) -> UserType: ...


class MarketplaceRepository(Protocol):
    """Storage behaviour needed by the service."""

    def get_tutors(self) -> List[Tutor]:
        """Return all tutors."""

    def get_tutor(self, tutor_id: str) -> Optional[Tutor]:
        """Return one tutor, or None."""

    def get_session(self, session_id: str) -> Optional[TutoringSession]:
        """Return one session, or None."""

    def get_sessions_for_tutor(self, tutor_id: str) -> List[TutoringSession]:
        """Return every session booked with the tutor."""

    def get_sessions_for_student(self, student_id: str) -> List[TutoringSession]:
        """Return every session booked by the student."""

    def get_payments_for_tutor(self, tutor_id: str) -> List[Payment]:
        """Return every payment owed to the tutor."""

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Return one conversation, or None."""

    def get_messages(self, conversation_id: str) -> List[Message]:
        """Return a conversation's messages, oldest first."""

    def save(self, entity: Entity) -> None:
        """
        Insert or replace a record.

        Inserting a session that overlaps a committed active session of the
        same tutor must raise ConcurrentModificationError.
        """


class PaymentProcessor(Protocol):
    """Charges a student; the gateway protocol itself lives behind this."""

    def charge(self, amount, reference: str) -> ChargeResult:
        """Attempt a charge and report the outcome."""


class MarketplaceService:
    """
    Orchestrates search, booking, payment and tutor self-service.

    Booking uses optimistic concurrency: the tutor's sessions are re-read and
    re-validated before every commit attempt, and a lost race is retried once
    before being reported as a conflict.
    """

    BOOKING_ATTEMPTS = 2

    def __init__(
        self,
        repository: MarketplaceRepository,
        payment_processor: PaymentProcessor,
        identity: IdentityProvider,
        engine: Optional[BookingEngine] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._repository = repository
        self._payment_processor = payment_processor
        self._identity = identity
        self._config = config or AppConfig()
        self._engine = engine or BookingEngine(fee_rate=self._config.platform_fee_rate)

    # Search and pricing

    def search(
        self,
        search_filter: Optional[TutorSearchFilter] = None,
        query: str = "",
        *,
        reference: Optional[datetime] = None,
        origin: Optional[Coordinates] = None,
    ) -> List[Tutor]:
        """
        Filter all tutors from the repository.

        Availability flags are judged against ``reference``, which defaults to
        now in the configured timezone.
        """
        tutors = self._call_repository(self._repository.get_tutors)
        results = search_tutors(
            tutors,
            search_filter,
            query,
            reference=reference or pendulum.now(self._config.timezone),
            origin=origin,
            default_max_distance_km=self._config.default_search_radius_km,
        )
        logger.debug("Search matched %d of %d tutors", len(results), len(tutors))
        return results

    def get_tutor(self, tutor_id: str) -> Tutor:
        """
        Raises:
            RepositoryError: If the tutor does not exist
        """
        tutor = self._call_repository(self._repository.get_tutor, tutor_id)
        if tutor is None:
            raise RepositoryError(f"Unknown tutor: {tutor_id}")
        return tutor

    def quote(self, tutor_id: str, duration: SessionDuration) -> Quote:
        tutor = self.get_tutor(tutor_id)
        return quote(tutor.hourly_rate, duration, self._config.platform_fee_rate)

    def sessions_for_tutor(self, tutor_id: str) -> List[TutoringSession]:
        sessions = self._call_repository(self._repository.get_sessions_for_tutor, tutor_id)
        return sorted(sessions, key=lambda session: session.scheduled_date_time)

    # Booking

    def book_session(self, tutor_id: str, request: BookingRequest) -> TutoringSession:
        """
        Validate and commit a booking for the current student.

        Raises:
            PermissionDeniedError: If the caller is not a student
            NotAvailableError: If the tutor is not available then
            BookingConflictError: If another session holds the window
        """
        self._require_student(request.student_id)
        tutor = self.get_tutor(tutor_id)

        for attempt in range(1, self.BOOKING_ATTEMPTS + 1):
            existing = self._call_repository(self._repository.get_sessions_for_tutor, tutor_id)
            session = self._engine.validate_booking(tutor, request, existing)
            try:
                self._call_repository(self._repository.save, session)
            except ConcurrentModificationError as exc:
                logger.warning(
                    "Booking commit for tutor %s lost a race (attempt %d/%d): %s",
                    tutor_id, attempt, self.BOOKING_ATTEMPTS, exc,
                )
                continue

            logger.info(
                "Booked session %s with tutor %s at %s for %s",
                session.id, tutor_id, session.scheduled_date_time.isoformat(),
                session.total_amount,
            )
            return session

        raise BookingConflictError(
            f"Tutor {tutor_id} was booked by someone else for that time"
        )

    def checkout(self, session: TutoringSession, payment_intent_ref: Optional[str] = None) -> Payment:
        """
        Charge the student for a pending session.

        The stored session is re-read first, so a session that was already
        paid for or cancelled is never charged. A successful charge confirms
        the session. A declined charge leaves the session pending and returns
        the failed payment.

        Raises:
            RepositoryError: If the session is not stored
            InvalidTransitionError: If the stored session is no longer pending
            PaymentError: If the processor itself fails
        """
        stored = self._call_repository(self._repository.get_session, session.id)
        if stored is None:
            raise RepositoryError(f"Unknown session: {session.id}")
        if not can_transition(stored.status, SessionStatus.CONFIRMED):
            raise InvalidTransitionError(
                f"Session {stored.id} is {stored.status.value} and cannot be paid for"
            )
        session = stored

        reference = payment_intent_ref or f"pi_{uuid.uuid4().hex[:24]}"
        payment = self._engine.create_payment(session, reference)
        self._call_repository(self._repository.save, payment)

        try:
            result = self._payment_processor.charge(payment.amount, reference)
        except Exception as exc:
            logger.error("Payment processor failed for %s: %s", reference, exc)
            self._call_repository(self._repository.save, mark_payment(payment, PaymentStatus.FAILED))
            raise PaymentError(f"Payment processing failed: {exc}") from exc

        if not result.succeeded:
            payment = mark_payment(payment, PaymentStatus.FAILED)
            self._call_repository(self._repository.save, payment)
            logger.warning("Charge %s declined: %s", reference, result.message or "no reason given")
            return payment

        payment = mark_payment(payment, PaymentStatus.SUCCEEDED)
        self._call_repository(self._repository.save, payment)

        confirmed = transition_session(
            session.model_copy(update={"payment_intent_id": reference}),
            SessionStatus.CONFIRMED,
        )
        self._call_repository(self._repository.save, confirmed)
        logger.info("Session %s confirmed with payment %s", session.id, payment.id)
        return payment

    def update_session_status(self, session: TutoringSession, status: SessionStatus) -> TutoringSession:
        updated = transition_session(session, status)
        self._call_repository(self._repository.save, updated)
        return updated

    # Tutor self-service

    def add_availability_slot(self, tutor_id: str, day: DayOfWeek, start: str, end: str) -> TimeSlot:
        tutor = self._require_own_tutor(tutor_id)
        slot = tutor.availability.add_slot(day, start, end)
        self._call_repository(self._repository.save, tutor)
        logger.info("Tutor %s added %s %s-%s", tutor_id, day.value, slot.start, slot.end)
        return slot

    def remove_availability_slot(self, tutor_id: str, day: DayOfWeek, slot_id: str) -> bool:
        tutor = self._require_own_tutor(tutor_id)
        removed = tutor.availability.remove_slot(day, slot_id)
        if removed:
            self._call_repository(self._repository.save, tutor)
        return removed

    def connect_payment_account(self, tutor_id: str, account_id: str) -> Tutor:
        """
        Record the tutor's payout account; this happens once.

        Raises:
            InvalidTransitionError: If an account is already connected
        """
        tutor = self._require_own_tutor(tutor_id)
        if tutor.is_stripe_connected:
            raise InvalidTransitionError(f"Tutor {tutor_id} already has a connected payment account")
        if not account_id.strip():
            raise BookingValidationError("Payment account id cannot be empty")

        tutor.is_stripe_connected = True
        tutor.stripe_account_id = account_id.strip()
        self._call_repository(self._repository.save, tutor)
        return tutor

    def earnings(
        self,
        tutor_id: str,
        period: Optional[EarningsPeriod] = None,
        reference: Optional[datetime] = None,
    ) -> EarningsSummary:
        """Earnings for all time, or for a period around now in the configured timezone."""
        payments = self._call_repository(self._repository.get_payments_for_tutor, tutor_id)
        return summarize_earnings(
            payments,
            tutor_id,
            period,
            reference=reference or pendulum.now(self._config.timezone),
        )

    def recent_payments(self, tutor_id: str, limit: int = RECENT_PAYMENTS_LIMIT) -> List[Payment]:
        payments = self._call_repository(self._repository.get_payments_for_tutor, tutor_id)
        return recent_payments(payments, tutor_id, limit)

    # Student views

    def my_sessions(self) -> List[TutoringSession]:
        """The current user's sessions, soonest first."""
        sessions = self._call_repository(
            self._repository.get_sessions_for_student, self._identity.current_user_id
        )
        return sorted(sessions, key=lambda session: session.scheduled_date_time)

    # Messaging

    def send_message(
        self,
        recipient_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> Message:
        """Send a message from the current user and update the pair's conversation."""
        sender_id = self._identity.current_user_id
        message = compose_message(sender_id, recipient_id, content, message_type)

        conversation = self._call_repository(self._repository.get_conversation, message.conversation_id)
        if conversation is None:
            if self._identity.current_user_type is UserType.STUDENT:
                conversation = start_conversation(sender_id, recipient_id)
            else:
                conversation = start_conversation(recipient_id, sender_id)

        self._call_repository(self._repository.save, message)
        self._call_repository(
            self._repository.save,
            record_message(conversation, message),
        )
        return message

    def conversation_with(self, other_user_id: str) -> Tuple[Optional[Conversation], List[Message]]:
        """
        Open the thread with another user.

        Opening it marks read whatever the other participant sent; the
        other participant's own unread count is left alone.
        """
        conversation_id = conversation_id_for(self._identity.current_user_id, other_user_id)
        conversation = self._call_repository(self._repository.get_conversation, conversation_id)
        messages = self._call_repository(self._repository.get_messages, conversation_id)

        if conversation is not None and conversation.unread_for(self._identity.current_user_id):
            conversation = mark_read(conversation)
            self._call_repository(self._repository.save, conversation)
        return conversation, messages

    # Helpers

    def _require_student(self, student_id: str) -> None:
        if self._identity.current_user_type is not UserType.STUDENT:
            raise PermissionDeniedError("Only students can book sessions")
        if self._identity.current_user_id != student_id:
            raise PermissionDeniedError("Students can only book sessions for themselves")

    def _require_own_tutor(self, tutor_id: str) -> Tutor:
        tutor = self.get_tutor(tutor_id)
        if (
            self._identity.current_user_type is not UserType.TUTOR
            or self._identity.current_user_id != tutor.user_id
        ):
            raise PermissionDeniedError(f"Only tutor {tutor_id} can change this profile")
        return tutor

    @staticmethod
    def _call_repository(operation, *args):
        """Run a repository call, wrapping foreign failures in RepositoryError."""
        try:
            return operation(*args)
        except TutorbookError:
            raise
        except Exception as exc:
            logger.error("Repository call %s failed: %s", getattr(operation, "__name__", operation), exc)
            raise RepositoryError(f"Repository failure: {exc}") from exc

