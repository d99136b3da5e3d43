"""
Shared fixtures for building tutors, requests and sessions.
"""

from decimal import Decimal

import pendulum
import pytest

from tutorbook.domain.availability import Availability
from tutorbook.domain.booking import BookingRequest
from tutorbook.domain.enums import (
    DayOfWeek,
    DeliveryMode,
    EducationLevel,
    SessionDuration,
)
from tutorbook.domain.models import Tutor

TZ = "Australia/Sydney"


@pytest.fixture
def make_tutor():
    """Factory for tutors; defaults to a Bondi maths tutor free Monday 15:00-19:00."""

    def _make(**overrides) -> Tutor:
        availability = Availability()
        availability.add_slot(DayOfWeek.MONDAY, "15:00", "19:00")
        fields = dict(
            id="tutor1",
            user_id="user-tutor1",
            subjects=frozenset({"math-advanced", "physics"}),
            education_level=EducationLevel.UNIVERSITY,
            hourly_rate=Decimal("45"),
            delivery_mode=DeliveryMode.BOTH,
            suburb="Bondi",
            availability=availability,
        )
        fields.update(overrides)
        return Tutor(**fields)

    return _make


@pytest.fixture
def make_request():
    """Factory for booking requests; defaults to Monday 9 Nov 2026 at 16:00 Sydney time."""

    def _make(**overrides) -> BookingRequest:
        fields = dict(
            student_id="student-1",
            subject_id="math-advanced",
            duration=SessionDuration.ONE_HOUR,
            scheduled_at=pendulum.datetime(2026, 11, 9, 16, 0, tz=TZ),
            delivery_mode=DeliveryMode.ONLINE,
        )
        fields.update(overrides)
        return BookingRequest(**fields)

    return _make
