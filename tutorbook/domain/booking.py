"""
Booking validation against tutor availability and existing sessions.

This is pure domain logic: it constructs records but never persists them and
never talks to a payment processor.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .availability import END_OF_DAY, TimeRange
from .enums import DayOfWeek, DeliveryMode, SessionDuration
from .exceptions import (
    BookingConflictError,
    BookingValidationError,
    InvalidRangeError,
    NotAvailableError,
)
from .models import Payment, Tutor, TutoringSession
from .pricing import PLATFORM_FEE_RATE, compute_fee_split, compute_total


@dataclass(frozen=True)
class BookingRequest:
    """
    A student's request for one session with a tutor.

    Invariant: scheduled_at is timezone-aware; its local weekday and clock time
    are matched against the tutor's weekly availability.
    """
    student_id: str
    subject_id: str
    duration: SessionDuration
    scheduled_at: datetime
    delivery_mode: DeliveryMode
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        if self.scheduled_at.tzinfo is None or self.scheduled_at.utcoffset() is None:
            raise ValueError("scheduled_at must be timezone-aware")
        if self.delivery_mode is DeliveryMode.BOTH:
            raise ValueError("A session is delivered either in person or online, not both")

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=int(self.duration))


class BookingEngine:
    """
    Validates booking requests and prices the resulting sessions.

    Checks run in order and the first failure wins:
    1. The tutor teaches the subject
    2. The tutor offers the requested delivery mode
    3. The requested window lies inside one availability slot
    4. No non-cancelled session of the tutor overlaps the window
    """

    def __init__(self, fee_rate: Decimal = PLATFORM_FEE_RATE):
        self.fee_rate = fee_rate

    @staticmethod
    def booking_window(scheduled_at: datetime, duration: SessionDuration) -> Tuple[DayOfWeek, TimeRange]:
        """
        Weekday and clock window of a booking in its own timezone.

        A session ending exactly at midnight ends at ``END_OF_DAY`` of its
        start day.

        Raises:
            NotAvailableError: If the session would run past midnight
        """
        end = scheduled_at + timedelta(minutes=int(duration))
        end_time = end.time().replace(second=0, microsecond=0, tzinfo=None)
        if end.date() != scheduled_at.date():
            ends_at_midnight = (
                end.date() == scheduled_at.date() + timedelta(days=1)
                and end_time == time(0, 0)
            )
            if not ends_at_midnight:
                raise NotAvailableError(
                    f"A {int(duration)} minute session starting at "
                    f"{scheduled_at.strftime('%H:%M')} would run past midnight"
                )
            end_time = END_OF_DAY

        day = DayOfWeek.from_index(scheduled_at.weekday())
        try:
            window = TimeRange(
                start=scheduled_at.time().replace(second=0, microsecond=0, tzinfo=None),
                end=end_time,
            )
        except InvalidRangeError as exc:
            raise NotAvailableError(str(exc)) from exc
        return day, window

    def validate_booking(
        self,
        tutor: Tutor,
        request: BookingRequest,
        existing_sessions: Iterable[TutoringSession],
    ) -> TutoringSession:
        """
        Validate a request and build the pending session for it.

        Args:
            tutor: The tutor being booked
            request: The student's booking request
            existing_sessions: Sessions already committed for this tutor

        Returns:
            A pending TutoringSession priced from the tutor's hourly rate

        Raises:
            BookingValidationError: Subject or delivery mode not offered
            NotAvailableError: Window outside the tutor's availability
            BookingConflictError: Window overlaps an active session
        """
        if request.subject_id not in tutor.subjects:
            raise BookingValidationError(
                f"Tutor {tutor.id} does not teach '{request.subject_id}'"
            )

        if not tutor.delivery_mode.accepts(request.delivery_mode):
            raise BookingValidationError(
                f"Tutor {tutor.id} does not offer {request.delivery_mode.value} sessions"
            )

        day, window = self.booking_window(request.scheduled_at, request.duration)
        if not tutor.availability.is_available(day, window.start, window.end):
            raise NotAvailableError(
                f"Tutor {tutor.id} is not available on {day.display_name} {window}"
            )

        conflicts = self.find_conflicts(
            existing_sessions,
            tutor_id=tutor.id,
            start=request.scheduled_at,
            end=request.ends_at,
        )
        if conflicts:
            raise BookingConflictError(
                f"Tutor {tutor.id} already has a session during "
                f"{request.scheduled_at.isoformat()} - {request.ends_at.isoformat()}",
                conflicting_ids=[session.id for session in conflicts],
            )

        return TutoringSession(
            student_id=request.student_id,
            tutor_id=tutor.id,
            subject_id=request.subject_id,
            duration=request.duration,
            scheduled_date_time=request.scheduled_at,
            delivery_mode=request.delivery_mode,
            location=request.location,
            meeting_link=request.meeting_link,
            total_amount=compute_total(tutor.hourly_rate, int(request.duration)),
            notes=request.notes,
        )

    @staticmethod
    def find_conflicts(
        sessions: Iterable[TutoringSession],
        *,
        tutor_id: str,
        start: datetime,
        end: datetime,
    ) -> List[TutoringSession]:
        """Active sessions of the tutor that overlap [start, end)."""
        return [
            session for session in sessions
            if session.tutor_id == tutor_id
            and session.is_active
            and session.overlaps(start, end)
        ]

    def create_payment(self, session: TutoringSession, payment_intent_ref: str) -> Payment:
        """Build the pending payment record for a session."""
        split = compute_fee_split(session.total_amount, self.fee_rate)
        return Payment(
            session_id=session.id,
            student_id=session.student_id,
            tutor_id=session.tutor_id,
            amount=session.total_amount,
            payment_intent_id=payment_intent_ref,
            platform_fee=split.platform_fee,
            tutor_earnings=split.tutor_earnings,
        )
