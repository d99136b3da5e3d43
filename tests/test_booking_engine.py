"""
Tests for booking validation.
"""

from decimal import Decimal

import pendulum
import pytest

from tutorbook.domain.availability import Availability
from tutorbook.domain.booking import BookingEngine
from tutorbook.domain.enums import (
    DayOfWeek,
    DeliveryMode,
    PaymentStatus,
    SessionDuration,
    SessionStatus,
)
from tutorbook.domain.exceptions import (
    BookingConflictError,
    BookingValidationError,
    NotAvailableError,
)

TZ = "Australia/Sydney"


def _monday(hour: int, minute: int = 0):
    return pendulum.datetime(2026, 11, 9, hour, minute, tz=TZ)


class TestBookingRequest:
    """Request construction guards."""

    def test_naive_datetime_is_rejected(self, make_request):
        with pytest.raises(ValueError, match="timezone-aware"):
            make_request(scheduled_at=pendulum.naive(2026, 11, 9, 16, 0))

    def test_both_is_not_a_session_mode(self, make_request):
        with pytest.raises(ValueError):
            make_request(delivery_mode=DeliveryMode.BOTH)

    def test_ends_at(self, make_request):
        request = make_request(duration=SessionDuration.TWO_HOURS)
        assert request.ends_at == _monday(18)


class TestValidateBooking:
    """Checks run in order and the first failure wins."""

    def setup_method(self):
        self.engine = BookingEngine()

    def test_valid_booking_creates_pending_session(self, make_tutor, make_request):
        session = self.engine.validate_booking(make_tutor(), make_request(notes="Calculus"), [])

        assert session.status is SessionStatus.PENDING
        assert session.tutor_id == "tutor1"
        assert session.student_id == "student-1"
        assert session.total_amount == Decimal("45")
        assert session.scheduled_date_time == _monday(16)
        assert session.notes == "Calculus"
        assert session.payment_intent_id is None

    def test_half_hour_price(self, make_tutor, make_request):
        request = make_request(duration=SessionDuration.THIRTY_MINUTES)
        session = self.engine.validate_booking(make_tutor(), request, [])
        assert session.total_amount == Decimal("22.5")

    def test_window_ending_at_slot_end_is_available(self, make_tutor, make_request):
        session = self.engine.validate_booking(make_tutor(), make_request(scheduled_at=_monday(18)), [])
        assert session.ends_at == _monday(19)

    def test_window_past_slot_end_is_not_available(self, make_tutor, make_request):
        with pytest.raises(NotAvailableError):
            self.engine.validate_booking(make_tutor(), make_request(scheduled_at=_monday(18, 30)), [])

    def test_day_without_slots_is_not_available(self, make_tutor, make_request):
        tuesday = _monday(16).add(days=1)
        with pytest.raises(NotAvailableError, match="Tuesday"):
            self.engine.validate_booking(make_tutor(), make_request(scheduled_at=tuesday), [])

    def test_session_past_midnight_is_not_available(self, make_tutor, make_request):
        availability = Availability()
        availability.add_slot(DayOfWeek.MONDAY, "22:00", "23:59")
        tutor = make_tutor(availability=availability)

        with pytest.raises(NotAvailableError, match="midnight"):
            self.engine.validate_booking(tutor, make_request(scheduled_at=_monday(23, 30)), [])

    def test_session_ending_at_midnight_is_available(self, make_tutor, make_request):
        availability = Availability()
        availability.add_slot(DayOfWeek.MONDAY, "22:00", "24:00")
        tutor = make_tutor(availability=availability)

        session = self.engine.validate_booking(tutor, make_request(scheduled_at=_monday(23)), [])

        assert session.ends_at == pendulum.datetime(2026, 11, 10, 0, 0, tz=TZ)
        day, window = BookingEngine.booking_window(_monday(23), SessionDuration.ONE_HOUR)
        assert day is DayOfWeek.MONDAY
        assert str(window) == "23:00 - 24:00"

    def test_session_crossing_midnight_stays_unavailable(self, make_tutor, make_request):
        availability = Availability()
        availability.add_slot(DayOfWeek.MONDAY, "22:00", "24:00")
        tutor = make_tutor(availability=availability)

        with pytest.raises(NotAvailableError, match="midnight"):
            self.engine.validate_booking(tutor, make_request(scheduled_at=_monday(23, 30)), [])

    def test_unknown_subject(self, make_tutor, make_request):
        with pytest.raises(BookingValidationError, match="does not teach"):
            self.engine.validate_booking(make_tutor(), make_request(subject_id="chemistry"), [])

    def test_subject_is_checked_before_availability(self, make_tutor, make_request):
        request = make_request(subject_id="chemistry", scheduled_at=_monday(8))
        with pytest.raises(BookingValidationError):
            self.engine.validate_booking(make_tutor(), request, [])

    def test_delivery_mode_not_offered(self, make_tutor, make_request):
        tutor = make_tutor(delivery_mode=DeliveryMode.ONLINE)
        with pytest.raises(BookingValidationError, match="inPerson"):
            self.engine.validate_booking(tutor, make_request(delivery_mode=DeliveryMode.IN_PERSON), [])

    def test_overlapping_session_conflicts(self, make_tutor, make_request):
        tutor = make_tutor()
        existing = self.engine.validate_booking(tutor, make_request(), [])
        overlapping = make_request(
            student_id="student-2",
            scheduled_at=_monday(16, 30),
            duration=SessionDuration.THIRTY_MINUTES,
        )

        with pytest.raises(BookingConflictError) as exc_info:
            self.engine.validate_booking(tutor, overlapping, [existing])

        assert exc_info.value.conflicting_ids == [existing.id]

    def test_back_to_back_sessions_do_not_conflict(self, make_tutor, make_request):
        tutor = make_tutor()
        existing = self.engine.validate_booking(tutor, make_request(), [])

        session = self.engine.validate_booking(tutor, make_request(scheduled_at=_monday(17)), [existing])
        assert session.scheduled_date_time == existing.ends_at

    def test_cancelled_sessions_free_the_window(self, make_tutor, make_request):
        tutor = make_tutor()
        existing = self.engine.validate_booking(tutor, make_request(), [])
        cancelled = existing.model_copy(update={"status": SessionStatus.CANCELLED})

        session = self.engine.validate_booking(tutor, make_request(), [cancelled])
        assert session.id != existing.id

    def test_other_tutors_sessions_are_ignored(self, make_tutor, make_request):
        other = self.engine.validate_booking(make_tutor(id="tutor2"), make_request(), [])
        session = self.engine.validate_booking(make_tutor(), make_request(), [other])
        assert session.tutor_id == "tutor1"


class TestCreatePayment:
    """Pending payment records for a session."""

    def test_payment_carries_the_fee_split(self, make_tutor, make_request):
        engine = BookingEngine()
        session = engine.validate_booking(make_tutor(), make_request(), [])

        payment = engine.create_payment(session, "pi_test")

        assert payment.amount == Decimal("45")
        assert payment.platform_fee == Decimal("1.80")
        assert payment.tutor_earnings == Decimal("43.20")
        assert payment.status is PaymentStatus.PENDING
        assert payment.session_id == session.id
        assert payment.payment_intent_id == "pi_test"

    def test_configured_fee_rate(self, make_tutor, make_request):
        engine = BookingEngine(fee_rate=Decimal("0.10"))
        session = engine.validate_booking(make_tutor(), make_request(), [])

        payment = engine.create_payment(session, "pi_test")
        assert payment.platform_fee == Decimal("4.50")
        assert payment.tutor_earnings == Decimal("40.50")
