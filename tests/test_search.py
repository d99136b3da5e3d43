"""
Tests for tutor search filtering.
"""

from decimal import Decimal

import pendulum
import pytest

from tutorbook.domain.availability import Availability
from tutorbook.domain.enums import DayOfWeek, DeliveryMode
from tutorbook.domain.search import TutorSearchFilter, distance_km, search_tutors

BONDI = (-33.8915, 151.2767)
MANLY = (-33.7969, 151.2850)

MONDAY = pendulum.datetime(2026, 11, 9, 10, 0, tz="Australia/Sydney")
TUESDAY = MONDAY.add(days=1)


def _availability(day: DayOfWeek, start: str, end: str) -> Availability:
    availability = Availability()
    availability.add_slot(day, start, end)
    return availability


@pytest.fixture
def tutors(make_tutor):
    """Three tutors: Bondi maths (Monday), Manly English (Tuesday), Parramatta chemistry (Friday)."""
    return [
        make_tutor(
            id="bondi",
            hourly_rate=Decimal("50"),
            rating=4.8,
            latitude=BONDI[0],
            longitude=BONDI[1],
        ),
        make_tutor(
            id="manly",
            subjects=frozenset({"english-advanced"}),
            hourly_rate=Decimal("40"),
            delivery_mode=DeliveryMode.ONLINE,
            suburb="Manly",
            rating=4.0,
            latitude=MANLY[0],
            longitude=MANLY[1],
            availability=_availability(DayOfWeek.TUESDAY, "17:00", "21:00"),
        ),
        make_tutor(
            id="parramatta",
            subjects=frozenset({"chemistry"}),
            hourly_rate=Decimal("35"),
            delivery_mode=DeliveryMode.IN_PERSON,
            suburb="Parramatta",
            rating=4.2,
            availability=_availability(DayOfWeek.FRIDAY, "15:30", "18:30"),
        ),
    ]


def _ids(results):
    return [tutor.id for tutor in results]


class TestSearchTutors:
    """Each clause is pass/fail and results keep input order."""

    def test_no_criteria_returns_everyone_in_order(self, tutors):
        assert _ids(search_tutors(tutors)) == ["bondi", "manly", "parramatta"]

    def test_max_rate_is_inclusive(self, tutors):
        results = search_tutors(tutors, TutorSearchFilter(max_hourly_rate=Decimal("40")))
        assert _ids(results) == ["manly", "parramatta"]

    def test_min_rating(self, tutors):
        results = search_tutors(tutors, TutorSearchFilter(min_rating=4.5))
        assert _ids(results) == ["bondi"]

    def test_online_includes_tutors_offering_both(self, tutors):
        results = search_tutors(tutors, TutorSearchFilter(delivery_mode=DeliveryMode.ONLINE))
        assert _ids(results) == ["bondi", "manly"]

    def test_in_person_includes_tutors_offering_both(self, tutors):
        results = search_tutors(tutors, TutorSearchFilter(delivery_mode=DeliveryMode.IN_PERSON))
        assert _ids(results) == ["bondi", "parramatta"]

    def test_subjects_match_any(self, tutors):
        search_filter = TutorSearchFilter(subjects={"chemistry", "english-advanced"})
        assert _ids(search_tutors(tutors, search_filter)) == ["manly", "parramatta"]

    def test_query_matches_suburb_case_insensitively(self, tutors):
        assert _ids(search_tutors(tutors, query="BONDI")) == ["bondi"]

    def test_query_matches_subject_names(self, tutors):
        assert _ids(search_tutors(tutors, query="english")) == ["manly"]
        assert _ids(search_tutors(tutors, query="math")) == ["bondi"]

    def test_blank_query_is_ignored(self, tutors):
        assert len(search_tutors(tutors, query="   ")) == 3

    def test_clauses_combine(self, tutors):
        search_filter = TutorSearchFilter(
            max_hourly_rate=Decimal("45"),
            delivery_mode=DeliveryMode.ONLINE,
        )
        assert _ids(search_tutors(tutors, search_filter)) == ["manly"]


class TestAvailabilityFlags:
    """Today and this-week are judged against a reference moment."""

    def test_available_today(self, tutors):
        search_filter = TutorSearchFilter(available_today=True)
        assert _ids(search_tutors(tutors, search_filter, reference=MONDAY)) == ["bondi"]
        assert _ids(search_tutors(tutors, search_filter, reference=TUESDAY)) == ["manly"]

    def test_available_this_week_skips_past_days(self, tutors):
        search_filter = TutorSearchFilter(available_this_week=True)
        assert _ids(search_tutors(tutors, search_filter, reference=TUESDAY)) == ["manly", "parramatta"]

    def test_available_this_week_on_monday_sees_everyone(self, tutors):
        search_filter = TutorSearchFilter(available_this_week=True)
        assert len(search_tutors(tutors, search_filter, reference=MONDAY)) == 3


class TestNearby:
    """Distance filtering from an origin."""

    def test_distance_sydney_to_melbourne(self):
        assert distance_km((-33.8688, 151.2093), (-37.8136, 144.9631)) == pytest.approx(713, abs=5)

    def test_distance_to_self_is_zero(self):
        assert distance_km(BONDI, BONDI) == pytest.approx(0.0)

    def test_nearby_excludes_far_and_unlocated_tutors(self, tutors):
        search_filter = TutorSearchFilter(nearby_only=True, max_distance=5)
        assert _ids(search_tutors(tutors, search_filter, origin=BONDI)) == ["bondi"]

    def test_nearby_with_wider_radius(self, tutors):
        search_filter = TutorSearchFilter(nearby_only=True, max_distance=20)
        assert _ids(search_tutors(tutors, search_filter, origin=BONDI)) == ["bondi", "manly"]

    def test_default_radius_is_used_without_max_distance(self, tutors):
        search_filter = TutorSearchFilter(nearby_only=True)
        results = search_tutors(tutors, search_filter, origin=BONDI, default_max_distance_km=2)
        assert _ids(results) == ["bondi"]

    def test_nearby_without_origin_is_ignored(self, tutors, caplog):
        search_filter = TutorSearchFilter(nearby_only=True)
        with caplog.at_level("WARNING"):
            results = search_tutors(tutors, search_filter)

        assert len(results) == 3
        assert "without an origin" in caplog.text
