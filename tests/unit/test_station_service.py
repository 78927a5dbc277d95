"""Unit tests for station service application layer."""

import pytest
import pytest_asyncio
from datetime import date, datetime, time
from zoneinfo import ZoneInfoNotFoundError

from src.station_booking.application.services.booking_service import BookingRequest, BookingService
from src.station_booking.application.services.station_service import CafeClock, StationService
from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.value_objects.live_status import StationState
from src.station_booking.domain.value_objects.time_range import TimeRange
from src.station_booking.infrastructure.repositories.memory_repositories import (
    InMemoryBookingRepository,
    InMemoryStationRepository
)

DAY = date(2024, 1, 1)


@pytest_asyncio.fixture
async def services():
    stations = InMemoryStationRepository()
    for station_id in (1, 2):
        await stations.save(Station(station_id=station_id, name=f"Station {station_id}", rate_per_hour=60))
    bookings = InMemoryBookingRepository(stations)
    booking_service = BookingService(booking_repository=bookings, station_repository=stations)
    station_service = StationService(
        station_repository=stations,
        booking_repository=bookings,
        clock=lambda: datetime(2024, 1, 1, 14, 20)
    )
    await booking_service.create_booking(BookingRequest(
        customer_name="Alice",
        station_id=1,
        booking_date=DAY,
        start_time=time(14, 0),
        end_time=time(15, 0)
    ))
    return booking_service, station_service


class TestStationService:
    """Test cases for station listing and occupancy."""

    @pytest.mark.asyncio
    async def test_list_stations(self, services):
        _, station_service = services

        stations = await station_service.list_stations()

        assert [s.id for s in stations] == [1, 2]

    @pytest.mark.asyncio
    async def test_window_availability(self, services):
        _, station_service = services

        annotated = await station_service.list_stations_for_window(
            TimeRange(DAY, time(14, 30), time(16, 0))
        )

        assert [(s.id, available) for s, available in annotated] == [(1, False), (2, True)]

    @pytest.mark.asyncio
    async def test_live_statuses_use_clock(self, services):
        _, station_service = services

        statuses = await station_service.live_statuses()

        assert statuses[0].state == StationState.OCCUPIED
        assert statuses[0].time_remaining_minutes == 40
        assert statuses[1].state == StationState.AVAILABLE

    @pytest.mark.asyncio
    async def test_live_statuses_explicit_now(self, services):
        _, station_service = services

        statuses = await station_service.live_statuses(datetime(2024, 1, 1, 15, 0))

        assert all(s.state == StationState.AVAILABLE for s in statuses)

    @pytest.mark.asyncio
    async def test_completion_frees_station(self, services):
        booking_service, station_service = services
        booking = (await booking_service.confirmed_bookings_on(DAY))[0]

        await booking_service.complete_booking(booking.id)
        statuses = await station_service.live_statuses()

        assert statuses[0].state == StationState.AVAILABLE


class TestCafeClock:
    """Test cases for the local wall clock."""

    def test_now_is_naive(self):
        now = CafeClock("UTC").now()

        assert now.tzinfo is None

    def test_unknown_zone(self):
        with pytest.raises(ZoneInfoNotFoundError):
            CafeClock("Not/AZone")
