"""Unit tests for live status value object."""

import pytest

from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.value_objects.live_status import LiveStatus, StationState, format_minutes


class TestFormatMinutes:
    """Test cases for remaining-time display."""

    @pytest.mark.parametrize("minutes,expected", [
        (0, "0m"),
        (45, "45m"),
        (60, "1h 0m"),
        (65, "1h 5m"),
        (125, "2h 5m"),
        (-3, "0m"),
    ])
    def test_format(self, minutes, expected):
        assert format_minutes(minutes) == expected


class TestLiveStatusValue:
    """Test cases for LiveStatus construction."""

    def test_available(self):
        station = Station(station_id=2, name="Station 2", rate_per_hour=60)

        status = LiveStatus.available(station)

        assert status.state == StationState.AVAILABLE
        assert not status.is_occupied
        assert status.time_remaining_display is None

    def test_occupied_never_negative(self):
        station = Station(station_id=2, name="Station 2", rate_per_hour=60)

        status = LiveStatus.occupied(station, booking=None, minutes=-1)

        assert status.is_occupied
        assert status.time_remaining_minutes == 0
