"""
Recurring weekly availability for tutors.

Times are "HH:mm" strings on a zero-padded 24-hour clock. Every range is
half-open: a slot ``09:00-10:00`` ends where ``10:00-11:00`` begins. The end
of the day is written "24:00" and is only meaningful as an end time.
"""

from dataclasses import dataclass
from datetime import time
from typing import Dict, List, Union

from pydantic import Field, RootModel, field_validator, model_validator

from .base import DomainModel, new_id
from .enums import DayOfWeek
from .exceptions import InvalidRangeError, SlotOverlapError

ClockValue = Union[str, time]

# "24:00"; sorts after every real time of day
END_OF_DAY = time.max
MINUTES_PER_DAY = 24 * 60


def parse_clock_time(value: ClockValue) -> time:
    """
    Parse an "HH:mm" string into a ``time``; "24:00" becomes ``END_OF_DAY``.

    Raises:
        InvalidRangeError: If the value is not a zero-padded 24-hour time
    """
    if isinstance(value, time):
        if value.replace(tzinfo=None) == END_OF_DAY:
            return END_OF_DAY
        return value.replace(second=0, microsecond=0, tzinfo=None)

    text = value.strip()
    if len(text) != 5 or text[2] != ":" or not (text[:2] + text[3:]).isdigit():
        raise InvalidRangeError(f"Expected a time in HH:mm format, got '{value}'")

    hour, minute = int(text[:2]), int(text[3:])
    if hour == 24 and minute == 0:
        return END_OF_DAY
    if hour > 23 or minute > 59:
        raise InvalidRangeError(f"Time out of range: '{value}'")
    return time(hour=hour, minute=minute)


def format_clock_time(value: time) -> str:
    if value == END_OF_DAY:
        return "24:00"
    return value.strftime("%H:%M")


def _minutes(value: time) -> int:
    if value == END_OF_DAY:
        return MINUTES_PER_DAY
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time-of-day range.

    Invariant: start must be before end.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRangeError(
                f"Start time {format_clock_time(self.start)} must be before "
                f"end time {format_clock_time(self.end)}"
            )

    @classmethod
    def parse(cls, start: ClockValue, end: ClockValue) -> "TimeRange":
        return cls(start=parse_clock_time(start), end=parse_clock_time(end))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return _minutes(self.end) - _minutes(self.start)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if the other range lies entirely within this one."""
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None
        return TimeRange(start=max(self.start, other.start), end=min(self.end, other.end))

    def __str__(self) -> str:
        return f"{format_clock_time(self.start)} - {format_clock_time(self.end)}"


class TimeSlot(DomainModel):
    """A declared block of free time on one weekday."""
    id: str = Field(default_factory=new_id)
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        try:
            return format_clock_time(parse_clock_time(value))
        except InvalidRangeError as exc:
            raise ValueError(str(exc)) from exc

    @model_validator(mode="after")
    def validate_order(self) -> "TimeSlot":
        if self.end <= self.start:
            raise ValueError(f"Slot end {self.end} must be after start {self.start}")
        return self

    @property
    def time_range(self) -> TimeRange:
        return TimeRange.parse(self.start, self.end)


class Availability(RootModel[Dict[DayOfWeek, List[TimeSlot]]]):
    """
    Per-day ordered slot lists for one tutor.

    Slots on the same day never overlap and are kept sorted by start time.
    Days without slots are absent from the mapping.
    """
    root: Dict[DayOfWeek, List[TimeSlot]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def normalize(self) -> "Availability":
        for day in list(self.root):
            slots = sorted(self.root[day], key=lambda slot: slot.start)
            if not slots:
                del self.root[day]
                continue
            for previous, current in zip(slots, slots[1:]):
                if previous.time_range.overlaps(current.time_range):
                    raise ValueError(
                        f"Overlapping slots on {day.display_name}: "
                        f"{previous.time_range} and {current.time_range}"
                    )
            self.root[day] = slots
        return self

    def slots_for_day(self, day: DayOfWeek) -> List[TimeSlot]:
        """Return the day's slots in start order, or an empty list."""
        return list(self.root.get(day, []))

    def add_slot(self, day: DayOfWeek, start: ClockValue, end: ClockValue) -> TimeSlot:
        """
        Add a slot to a day and keep the day sorted.

        Raises:
            InvalidRangeError: If end is not after start
            SlotOverlapError: If the slot overlaps an existing slot on that day
        """
        new_range = TimeRange.parse(start, end)

        existing = self.root.get(day, [])
        for slot in existing:
            if slot.time_range.overlaps(new_range):
                raise SlotOverlapError(
                    f"{new_range} overlaps existing slot {slot.time_range} "
                    f"on {day.display_name}"
                )

        slot = TimeSlot(
            start=format_clock_time(new_range.start),
            end=format_clock_time(new_range.end),
        )
        self.root[day] = sorted([*existing, slot], key=lambda s: s.start)
        return slot

    def remove_slot(self, day: DayOfWeek, slot_id: str) -> bool:
        """Remove a slot by id. Returns False if no such slot exists."""
        slots = self.root.get(day, [])
        remaining = [slot for slot in slots if slot.id != slot_id]
        if len(remaining) == len(slots):
            return False

        if remaining:
            self.root[day] = remaining
        else:
            del self.root[day]
        return True

    def is_available(self, day: DayOfWeek, start: ClockValue, end: ClockValue) -> bool:
        """True iff a single stored slot fully contains [start, end)."""
        requested = TimeRange.parse(start, end)
        return any(
            slot.time_range.contains(requested)
            for slot in self.root.get(day, [])
        )

    def days_with_slots(self) -> List[DayOfWeek]:
        """Days that have at least one slot, Monday first."""
        return [day for day in DayOfWeek if self.root.get(day)]

    def is_empty(self) -> bool:
        return not self.days_with_slots()

    def weekly_minutes(self) -> int:
        """Total declared minutes across the week."""
        return sum(
            slot.time_range.duration_minutes()
            for slots in self.root.values()
            for slot in slots
        )
