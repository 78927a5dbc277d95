"""Unit tests for the availability engine."""

import pytest
from datetime import date, datetime, time

from src.station_booking.domain.entities.booking import Booking
from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.services.availability import (
    compute_live_status,
    compute_live_statuses,
    compute_window_availability,
    conflict_check,
    find_conflicts,
    intervals_overlap
)
from src.station_booking.domain.value_objects.live_status import StationState
from src.station_booking.domain.value_objects.time_range import TimeRange

DAY = date(2024, 1, 1)


def make_booking(station, start, end, booking_date=DAY, name="Alice", created_at=None):
    return Booking.reserve(
        name,
        station,
        TimeRange(booking_date, start, end),
        created_at=created_at
    )


@pytest.fixture
def ps5():
    return Station(station_id=1, name="Station 1", rate_per_hour=100, specs="PS5")


@pytest.fixture
def pc():
    return Station(station_id=3, name="Station 3", rate_per_hour=60, specs="PC")


class TestIntervalsOverlap:
    """Test cases for the half-open interval test."""

    @pytest.mark.parametrize("a,b,expected", [
        ((time(14, 0), time(15, 0)), (time(14, 30), time(15, 30)), True),
        ((time(14, 0), time(15, 0)), (time(15, 0), time(16, 0)), False),
        ((time(14, 0), time(15, 0)), (time(13, 0), time(14, 0)), False),
        ((time(14, 0), time(18, 0)), (time(15, 0), time(16, 0)), True),
        ((time(15, 0), time(16, 0)), (time(14, 0), time(18, 0)), True),
        ((time(14, 0), time(15, 0)), (time(14, 0), time(15, 0)), True),
    ])
    def test_overlap(self, a, b, expected):
        assert intervals_overlap(*a, *b) is expected
        assert intervals_overlap(*b, *a) is expected


class TestConflictCheck:
    """Test cases for conflict detection."""

    def test_overlapping_window_conflicts(self, ps5):
        existing = [make_booking(ps5, time(14, 0), time(15, 0))]

        assert conflict_check(1, DAY, time(14, 30), time(15, 30), existing)

    def test_adjacent_window_is_free(self, ps5):
        existing = [make_booking(ps5, time(14, 0), time(15, 0))]

        assert not conflict_check(1, DAY, time(15, 0), time(16, 0), existing)

    def test_completed_bookings_are_ignored(self, ps5):
        booking = make_booking(ps5, time(14, 0), time(15, 0))
        booking.complete()

        assert not conflict_check(1, DAY, time(14, 0), time(15, 0), [booking])

    def test_other_station_and_date_are_ignored(self, ps5, pc):
        existing = [
            make_booking(pc, time(14, 0), time(15, 0)),
            make_booking(ps5, time(14, 0), time(15, 0), booking_date=date(2024, 1, 2)),
        ]

        assert not conflict_check(1, DAY, time(14, 0), time(15, 0), existing)

    def test_find_conflicts_returns_all_overlaps(self, ps5):
        morning = make_booking(ps5, time(9, 0), time(11, 0))
        noon = make_booking(ps5, time(11, 0), time(13, 0))
        evening = make_booking(ps5, time(18, 0), time(19, 0))

        conflicts = find_conflicts(1, DAY, time(10, 0), time(12, 0), [morning, noon, evening])

        assert conflicts == [morning, noon]


class TestLiveStatus:
    """Test cases for live occupancy."""

    def test_available_without_bookings(self, ps5):
        status = compute_live_status(ps5, datetime(2024, 1, 1, 14, 30), [])

        assert status.state == StationState.AVAILABLE
        assert status.occupying_booking is None
        assert status.time_remaining_minutes is None

    def test_occupied_inside_interval(self, ps5):
        booking = make_booking(ps5, time(14, 0), time(15, 0))

        status = compute_live_status(ps5, datetime(2024, 1, 1, 14, 30), [booking])

        assert status.state == StationState.OCCUPIED
        assert status.occupying_booking == booking
        assert status.time_remaining_minutes == 30
        assert status.time_remaining_display == "30m"

    def test_remaining_minutes_are_floored(self, ps5):
        booking = make_booking(ps5, time(14, 0), time(16, 0))

        status = compute_live_status(ps5, datetime(2024, 1, 1, 14, 54, 30), [booking])

        assert status.time_remaining_minutes == 65
        assert status.time_remaining_display == "1h 5m"

    def test_start_instant_occupies_end_instant_frees(self, ps5):
        booking = make_booking(ps5, time(14, 0), time(15, 0))

        at_start = compute_live_status(ps5, datetime(2024, 1, 1, 14, 0), [booking])
        at_end = compute_live_status(ps5, datetime(2024, 1, 1, 15, 0), [booking])

        assert at_start.state == StationState.OCCUPIED
        assert at_start.time_remaining_minutes == 60
        assert at_end.state == StationState.AVAILABLE

    def test_completed_booking_frees_station(self, ps5):
        booking = make_booking(ps5, time(14, 0), time(15, 0))
        booking.complete()

        status = compute_live_status(ps5, datetime(2024, 1, 1, 14, 30), [booking])

        assert status.state == StationState.AVAILABLE

    def test_other_day_does_not_occupy(self, ps5):
        booking = make_booking(ps5, time(14, 0), time(15, 0), booking_date=date(2024, 1, 2))

        status = compute_live_status(ps5, datetime(2024, 1, 1, 14, 30), [booking])

        assert status.state == StationState.AVAILABLE

    def test_earliest_start_wins_on_overlap(self, ps5):
        """Overlapping rows should never exist, but the answer must stay deterministic."""
        later = make_booking(ps5, time(14, 15), time(16, 0), name="Later")
        earlier = make_booking(ps5, time(14, 0), time(15, 0), name="Earlier")

        status = compute_live_status(ps5, datetime(2024, 1, 1, 14, 30), [later, earlier])

        assert status.occupying_booking == earlier

    def test_live_statuses_in_station_order(self, ps5, pc):
        booking = make_booking(pc, time(14, 0), time(15, 0))

        statuses = compute_live_statuses([ps5, pc], datetime(2024, 1, 1, 14, 30), [booking])

        assert [s.station.id for s in statuses] == [1, 3]
        assert [s.state for s in statuses] == [StationState.AVAILABLE, StationState.OCCUPIED]


class TestWindowAvailability:
    """Test cases for availability over a requested window."""

    def test_window_availability(self, ps5, pc):
        bookings = [make_booking(ps5, time(14, 0), time(15, 0))]

        busy = compute_window_availability(
            [ps5, pc], TimeRange(DAY, time(14, 30), time(15, 30)), bookings
        )
        free = compute_window_availability(
            [ps5, pc], TimeRange(DAY, time(15, 0), time(16, 0)), bookings
        )

        assert busy == {1: False, 3: True}
        assert free == {1: True, 3: True}
