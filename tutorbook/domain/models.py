"""
Domain records for users, tutors, sessions, payments and messaging.

All records serialize to JSON-compatible dicts through ``to_json_dict`` and
read back with ``Model.model_validate``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from pydantic import ConfigDict, Field, field_validator, model_validator

from .availability import Availability
from .base import DomainModel, new_id, utcnow
from .enums import (
    DeliveryMode,
    EducationLevel,
    MessageType,
    PaymentStatus,
    SessionDuration,
    SessionStatus,
    UserType,
    YearLevel,
)
from .subjects import is_known_subject


def _check_subject_ids(subject_ids: FrozenSet[str]) -> FrozenSet[str]:
    unknown = sorted(subject_id for subject_id in subject_ids if not is_known_subject(subject_id))
    if unknown:
        raise ValueError(f"Unknown subject ids: {', '.join(unknown)}")
    return subject_ids


class User(DomainModel):
    id: str = Field(default_factory=new_id)
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: str
    user_type: UserType
    created_at: datetime = Field(default_factory=utcnow)
    is_active: bool = True

    @property
    def display_name(self) -> str:
        if self.last_name:
            return f"{self.first_name} {self.last_name[0]}."
        return self.first_name


class Student(DomainModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    year_level: YearLevel
    subjects: FrozenSet[str] = frozenset()
    suburb: Optional[str] = None

    @field_validator("subjects")
    @classmethod
    def validate_subjects(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return _check_subject_ids(value)


class Tutor(DomainModel):
    """
    A tutor profile.

    Only ``availability`` and the payment-account fields change after
    registration.
    """
    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    subjects: FrozenSet[str]
    education_level: EducationLevel
    hourly_rate: Decimal = Field(gt=0)
    delivery_mode: DeliveryMode
    suburb: str
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_verified: bool = False
    is_stripe_connected: bool = False
    stripe_account_id: Optional[str] = None
    availability: Availability = Field(default_factory=Availability)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    total_sessions: int = Field(default=0, ge=0)

    @field_validator("subjects")
    @classmethod
    def validate_subjects(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return _check_subject_ids(value)

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


class TutoringSession(DomainModel):
    id: str = Field(default_factory=new_id)
    student_id: str
    tutor_id: str
    subject_id: str
    duration: SessionDuration
    scheduled_date_time: datetime
    delivery_mode: DeliveryMode
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    total_amount: Decimal = Field(ge=0)
    payment_intent_id: Optional[str] = None
    status: SessionStatus = SessionStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    notes: Optional[str] = None

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_date_time + timedelta(minutes=int(self.duration))

    @property
    def is_active(self) -> bool:
        return self.status is not SessionStatus.CANCELLED

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Check if this session's [start, end) overlaps the given window."""
        return self.scheduled_date_time < end and self.ends_at > start


class Payment(DomainModel):
    """
    A charge for one session.

    Invariant: platform_fee + tutor_earnings == amount.
    """
    id: str = Field(default_factory=new_id)
    session_id: str
    student_id: str
    tutor_id: str
    amount: Decimal = Field(ge=0)
    payment_intent_id: str
    platform_fee: Decimal
    tutor_earnings: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    processed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_split(self) -> "Payment":
        if self.platform_fee + self.tutor_earnings != self.amount:
            raise ValueError(
                f"Fee split {self.platform_fee} + {self.tutor_earnings} "
                f"does not add up to {self.amount}"
            )
        return self


class Conversation(DomainModel):
    """
    The thread between one student and one tutor.

    ``unread_count`` counts the messages from ``last_sender_id`` that the other
    participant has not read yet.
    """
    id: str
    student_id: str
    tutor_id: str
    last_message: Optional[str] = None
    last_message_timestamp: Optional[datetime] = None
    last_sender_id: Optional[str] = None
    unread_count: int = Field(default=0, ge=0)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    def unread_for(self, user_id: str) -> int:
        """Messages waiting for ``user_id``; always 0 for the last sender."""
        if self.last_sender_id is None or user_id == self.last_sender_id:
            return 0
        if user_id not in (self.student_id, self.tutor_id):
            return 0
        return self.unread_count


class Message(DomainModel):
    id: str = Field(default_factory=new_id)
    conversation_id: str
    sender_id: str
    recipient_id: str
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    is_read: bool = False
    message_type: MessageType = MessageType.TEXT


@dataclass(frozen=True)
class ChargeResult:
    """Outcome reported by a payment processor for one charge."""
    succeeded: bool
    reference: str
    message: str = ""
