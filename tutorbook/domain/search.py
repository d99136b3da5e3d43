"""
Tutor search: pass/fail filtering over a tutor collection.

Results keep the input order; there is no ranking.
"""

import logging
import math
from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, Iterable, List, Optional, Tuple

import pendulum
from pydantic import BaseModel, Field

from .enums import DayOfWeek, DeliveryMode
from .models import Tutor
from .subjects import subject_names

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

Coordinates = Tuple[float, float]


class TutorSearchFilter(BaseModel):
    """Transient search criteria; an unset field never excludes a tutor."""
    subjects: FrozenSet[str] = frozenset()
    min_rating: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    max_hourly_rate: Optional[Decimal] = Field(default=None, gt=0)
    delivery_mode: Optional[DeliveryMode] = None
    available_today: bool = False
    available_this_week: bool = False
    nearby_only: bool = False
    max_distance: Optional[float] = Field(default=None, gt=0)


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two (latitude, longitude) points."""
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    h = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


class TutorMatcher:
    """
    Evaluates one filter and free-text query against tutors.

    Availability flags are judged against ``reference``: "today" is its
    weekday, "this week" is its weekday through Sunday.
    """

    def __init__(
        self,
        search_filter: TutorSearchFilter,
        query: str = "",
        *,
        reference: Optional[datetime] = None,
        origin: Optional[Coordinates] = None,
        default_max_distance_km: float = 10.0,
    ):
        self.search_filter = search_filter
        self.query = query.strip().casefold()
        self.reference = reference or pendulum.now()
        self.origin = origin
        self.default_max_distance_km = default_max_distance_km

        if search_filter.nearby_only and origin is None:
            logger.warning("Nearby-only search requested without an origin; ignoring distance")

    def matches(self, tutor: Tutor) -> bool:
        return (
            self._matches_query(tutor)
            and self._matches_subjects(tutor)
            and self._matches_rate(tutor)
            and self._matches_rating(tutor)
            and self._matches_delivery_mode(tutor)
            and self._matches_availability(tutor)
            and self._matches_distance(tutor)
        )

    def _matches_query(self, tutor: Tutor) -> bool:
        if not self.query:
            return True
        haystacks = [*subject_names(tutor.subjects), tutor.suburb]
        return any(self.query in text.casefold() for text in haystacks)

    def _matches_subjects(self, tutor: Tutor) -> bool:
        wanted = self.search_filter.subjects
        return not wanted or bool(tutor.subjects & wanted)

    def _matches_rate(self, tutor: Tutor) -> bool:
        ceiling = self.search_filter.max_hourly_rate
        return ceiling is None or tutor.hourly_rate <= ceiling

    def _matches_rating(self, tutor: Tutor) -> bool:
        floor = self.search_filter.min_rating
        return floor is None or tutor.rating >= floor

    def _matches_delivery_mode(self, tutor: Tutor) -> bool:
        mode = self.search_filter.delivery_mode
        return mode is None or tutor.delivery_mode is mode or tutor.delivery_mode is DeliveryMode.BOTH

    def _matches_availability(self, tutor: Tutor) -> bool:
        today = self.reference.weekday()
        if self.search_filter.available_today:
            if not tutor.availability.slots_for_day(DayOfWeek.from_index(today)):
                return False
        if self.search_filter.available_this_week:
            remaining_days = [DayOfWeek.from_index(i) for i in range(today, 7)]
            if not any(tutor.availability.slots_for_day(day) for day in remaining_days):
                return False
        return True

    def _matches_distance(self, tutor: Tutor) -> bool:
        if not self.search_filter.nearby_only or self.origin is None:
            return True

        coordinates = tutor.coordinates
        if coordinates is None:
            return False

        limit = self.search_filter.max_distance or self.default_max_distance_km
        return distance_km(self.origin, coordinates) <= limit


def search_tutors(
    tutors: Iterable[Tutor],
    search_filter: Optional[TutorSearchFilter] = None,
    query: str = "",
    *,
    reference: Optional[datetime] = None,
    origin: Optional[Coordinates] = None,
    default_max_distance_km: float = 10.0,
) -> List[Tutor]:
    """
    Return the tutors that pass every active clause, in input order.

    Args:
        tutors: Candidate tutors
        search_filter: Structured criteria; None means no criteria
        query: Free text matched against subject names and suburb
        reference: Moment used for the availability flags (default: now)
        origin: Searcher's (latitude, longitude) for nearby-only searches
        default_max_distance_km: Radius used when the filter sets none

    Returns:
        Matching tutors
    """
    matcher = TutorMatcher(
        search_filter or TutorSearchFilter(),
        query,
        reference=reference,
        origin=origin,
        default_max_distance_km=default_max_distance_km,
    )
    return [tutor for tutor in tutors if matcher.matches(tutor)]
