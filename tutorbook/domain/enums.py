"""
Enumerations shared by the domain models.

Raw values are the wire contract used by the repository and any other
collaborator that reads serialized records.
"""

import enum


class UserType(str, enum.Enum):
    STUDENT = "student"
    TUTOR = "tutor"


class YearLevel(str, enum.Enum):
    YEAR_7 = "Year7"
    YEAR_8 = "Year8"
    YEAR_9 = "Year9"
    YEAR_10 = "Year10"
    YEAR_11 = "Year11"
    YEAR_12 = "Year12"


class EducationLevel(str, enum.Enum):
    HIGH_SCHOOL = "highSchool"
    UNIVERSITY = "university"
    GAP_YEAR = "gapYear"


class DeliveryMode(str, enum.Enum):
    IN_PERSON = "inPerson"
    ONLINE = "online"
    BOTH = "both"

    def accepts(self, requested: "DeliveryMode") -> bool:
        """Whether a tutor offering this mode can serve the requested one."""
        return self is DeliveryMode.BOTH or self is requested


class DayOfWeek(str, enum.Enum):
    """Days of the week; ``weekday`` matches ``datetime.weekday()`` (Monday=0)."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def weekday(self) -> int:
        return list(DayOfWeek).index(self)

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_index(cls, index: int) -> "DayOfWeek":
        return list(cls)[index]

    @classmethod
    def parse(cls, value: str) -> "DayOfWeek":
        """Parse a day name or three-letter abbreviation, case-insensitively."""
        key = value.strip().lower()
        for day in cls:
            if day.value == key or day.value[:3] == key:
                return day
        raise ValueError(f"Unknown day of week: '{value}'")


class SessionDuration(enum.IntEnum):
    THIRTY_MINUTES = 30
    ONE_HOUR = 60
    TWO_HOURS = 120

    @property
    def display_name(self) -> str:
        return {
            SessionDuration.THIRTY_MINUTES: "30 min",
            SessionDuration.ONE_HOUR: "1 hour",
            SessionDuration.TWO_HOURS: "2 hours",
        }[self]


class SessionStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class MessageType(str, enum.Enum):
    TEXT = "text"
    BOOKING_PROMPT = "bookingPrompt"
    SESSION_CONFIRMATION = "sessionConfirmation"
