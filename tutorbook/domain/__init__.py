"""
Domain layer - Marketplace records and rules, free of I/O.
"""

from .availability import Availability, TimeRange, TimeSlot, parse_clock_time
from .booking import BookingEngine, BookingRequest
from .enums import (
    DayOfWeek,
    DeliveryMode,
    EducationLevel,
    MessageType,
    PaymentStatus,
    SessionDuration,
    SessionStatus,
    UserType,
    YearLevel,
)
from .models import (
    ChargeResult,
    Conversation,
    Message,
    Payment,
    Student,
    Tutor,
    TutoringSession,
    User,
)
from .pricing import PLATFORM_FEE_RATE, FeeSplit, Quote, compute_fee_split, compute_total, quote
from .search import TutorSearchFilter, search_tutors
from .subjects import HSC_SUBJECTS, Subject

__all__ = [
    "Availability", "TimeRange", "TimeSlot", "parse_clock_time",
    "BookingEngine", "BookingRequest",
    "DayOfWeek", "DeliveryMode", "EducationLevel", "MessageType", "PaymentStatus",
    "SessionDuration", "SessionStatus", "UserType", "YearLevel",
    "ChargeResult", "Conversation", "Message", "Payment", "Student", "Tutor",
    "TutoringSession", "User",
    "PLATFORM_FEE_RATE", "FeeSplit", "Quote", "compute_fee_split", "compute_total", "quote",
    "TutorSearchFilter", "search_tutors",
    "HSC_SUBJECTS", "Subject",
]
