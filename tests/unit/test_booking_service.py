"""Unit tests for booking service application layer."""

import asyncio
import pytest
import pytest_asyncio
from datetime import date, time
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

from src.station_booking.application.ports.mirror import MirrorEvent
from src.station_booking.application.services.booking_service import BookingRequest, BookingService
from src.station_booking.domain.entities.booking import BookingStatus
from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.exceptions import (
    BookingConflictError,
    BookingNotFoundError,
    InvalidBookingStateError,
    StationNotFoundError,
    StoreUnavailableError,
    ValidationError
)
from src.station_booking.infrastructure.repositories.memory_repositories import (
    InMemoryBookingRepository,
    InMemoryStationRepository
)

DAY = date(2024, 1, 1)


def request_for(station_id=1, start=time(14, 0), end=time(15, 0), name="Alice", booking_date=DAY):
    return BookingRequest(
        customer_name=name,
        station_id=station_id,
        booking_date=booking_date,
        start_time=start,
        end_time=end
    )


@pytest_asyncio.fixture
async def repositories():
    stations = InMemoryStationRepository()
    await stations.save(Station(station_id=1, name="Station 1", rate_per_hour=100, specs="PS5"))
    await stations.save(Station(station_id=2, name="Station 2", rate_per_hour=100, specs="PS5"))
    await stations.save(Station(station_id=3, name="Station 3", rate_per_hour=60, specs="PC"))
    return stations, InMemoryBookingRepository(stations)


@pytest.fixture
def booking_service(repositories):
    stations, bookings = repositories
    return BookingService(booking_repository=bookings, station_repository=stations)


class TestCreateBooking:
    """Test cases for creating bookings."""

    @pytest.mark.asyncio
    async def test_conflict_then_adjacent_accepted(self, booking_service):
        """Overlap is rejected; the adjacent hour is accepted and priced."""
        existing = await booking_service.create_booking(request_for(start=time(14, 0), end=time(15, 0)))

        with pytest.raises(BookingConflictError) as exc_info:
            await booking_service.create_booking(request_for(start=time(14, 30), end=time(15, 30), name="Bob"))
        assert exc_info.value.conflicting_codes == [existing.booking_code]

        adjacent = await booking_service.create_booking(request_for(start=time(15, 0), end=time(16, 0), name="Bob"))

        assert adjacent.status == BookingStatus.CONFIRMED
        assert adjacent.duration_hours == Decimal("1.00")
        assert adjacent.total_price == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_missing_fields(self, booking_service):
        request = BookingRequest(
            customer_name=" ",
            station_id=None,
            booking_date=DAY,
            start_time=time(14, 0),
            end_time=None
        )

        with pytest.raises(ValidationError, match="customer_name, station_id, end_time"):
            await booking_service.create_booking(request)

    @pytest.mark.asyncio
    async def test_end_before_start(self, booking_service):
        with pytest.raises(ValidationError, match="End time must be after start time"):
            await booking_service.create_booking(request_for(start=time(15, 0), end=time(14, 0)))

    @pytest.mark.asyncio
    async def test_unknown_station(self, booking_service):
        with pytest.raises(StationNotFoundError):
            await booking_service.create_booking(request_for(station_id=99))

    @pytest.mark.asyncio
    async def test_completed_booking_frees_window(self, booking_service):
        first = await booking_service.create_booking(request_for())
        await booking_service.complete_booking(first.id)

        again = await booking_service.create_booking(request_for(name="Bob"))

        assert again.is_confirmed

    @pytest.mark.asyncio
    async def test_same_window_on_other_station_allowed(self, booking_service):
        await booking_service.create_booking(request_for(station_id=1))
        other = await booking_service.create_booking(request_for(station_id=3))

        assert other.total_price == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_concurrent_creates_single_winner(self, booking_service):
        """Two overlapping requests racing for one station: exactly one wins."""
        results = await asyncio.gather(
            booking_service.create_booking(request_for(start=time(14, 0), end=time(15, 0), name="Alice")),
            booking_service.create_booking(request_for(start=time(14, 30), end=time(15, 30), name="Bob")),
            return_exceptions=True
        )

        created = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, BookingConflictError)]
        assert len(created) == 1
        assert len(conflicts) == 1

        confirmed = await booking_service.confirmed_bookings_on(DAY)
        assert len(confirmed) == 1

    @pytest.mark.asyncio
    async def test_station_day_locks_released(self, repositories, booking_service):
        """Locks for past (station, date) pairs do not pile up."""
        _, bookings = repositories
        for day in range(1, 6):
            await booking_service.create_booking(request_for(booking_date=date(2024, 1, day)))
        await asyncio.gather(
            booking_service.create_booking(request_for(station_id=2, name="Alice")),
            booking_service.create_booking(request_for(station_id=2, name="Bob")),
            return_exceptions=True
        )
        with pytest.raises(BookingConflictError):
            await booking_service.create_booking(request_for())

        assert bookings._locks == {}

    @pytest.mark.asyncio
    async def test_station_day_lock_shared_by_waiters(self, repositories):
        """A waiter queues on the held lock and the entry goes once both are done."""
        _, bookings = repositories
        order = []

        async def second():
            async with bookings.station_day_lock(1, DAY):
                order.append("second")

        async with bookings.station_day_lock(1, DAY):
            waiter = asyncio.create_task(second())
            await asyncio.sleep(0)
            order.append("first")
            assert len(bookings._locks) == 1
        await waiter

        assert order == ["first", "second"]
        assert bookings._locks == {}

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, repositories):
        stations, bookings = repositories
        bookings.add = AsyncMock(side_effect=StoreUnavailableError("database is down"))
        service = BookingService(booking_repository=bookings, station_repository=stations)

        with pytest.raises(StoreUnavailableError):
            await service.create_booking(request_for())
        assert service.drain_outbox() == []


class TestCreateBookings:
    """Test cases for booking several stations at once."""

    @pytest.mark.asyncio
    async def test_partial_success(self, booking_service):
        await booking_service.create_booking(request_for(station_id=2))

        result = await booking_service.create_bookings(request_for(station_id=None, name="Team"), [3, 2, 1, 99, 3])

        assert [b.station_id for b in result.created] == [1, 3]
        assert set(result.failed) == {2, 99}
        assert isinstance(result.failed[2], BookingConflictError)
        assert isinstance(result.failed[99], StationNotFoundError)

    @pytest.mark.asyncio
    async def test_requires_stations(self, booking_service):
        with pytest.raises(ValidationError, match="at least one station"):
            await booking_service.create_bookings(request_for(station_id=None), [])


class TestCompleteBooking:
    """Test cases for completing bookings."""

    @pytest.mark.asyncio
    async def test_complete(self, booking_service):
        booking = await booking_service.create_booking(request_for())

        completed = await booking_service.complete_booking(booking.id)
        view = await booking_service.get_booking(booking.id)

        assert completed.status == BookingStatus.COMPLETED
        assert view.booking.status == BookingStatus.COMPLETED
        assert view.station_name == "Station 1"

    @pytest.mark.asyncio
    async def test_complete_twice(self, booking_service):
        booking = await booking_service.create_booking(request_for())
        await booking_service.complete_booking(booking.id)

        with pytest.raises(InvalidBookingStateError):
            await booking_service.complete_booking(booking.id)

    @pytest.mark.asyncio
    async def test_complete_unknown(self, booking_service):
        with pytest.raises(BookingNotFoundError):
            await booking_service.complete_booking(uuid4())

    @pytest.mark.asyncio
    async def test_lost_completion_race(self, repositories):
        """The store refuses a transition another request already made."""
        stations, bookings = repositories
        service = BookingService(booking_repository=bookings, station_repository=stations)
        booking = await service.create_booking(request_for())
        service.drain_outbox()
        bookings.mark_completed = AsyncMock(side_effect=InvalidBookingStateError("no longer confirmed"))

        with pytest.raises(InvalidBookingStateError):
            await service.complete_booking(booking.id)
        assert service.drain_outbox() == []


class TestQueries:
    """Test cases for read operations."""

    @pytest.mark.asyncio
    async def test_get_unknown(self, booking_service):
        with pytest.raises(BookingNotFoundError):
            await booking_service.get_booking(uuid4())

    @pytest.mark.asyncio
    async def test_list_newest_first(self, booking_service):
        await booking_service.create_booking(request_for(start=time(9, 0), end=time(10, 0)))
        await booking_service.create_booking(request_for(start=time(12, 0), end=time(13, 0)))
        await booking_service.create_booking(
            request_for(start=time(8, 0), end=time(9, 0), booking_date=date(2024, 1, 2))
        )

        views = await booking_service.list_with_station_names()

        assert [(v.booking.booking_date, v.booking.start_time) for v in views] == [
            (date(2024, 1, 2), time(8, 0)),
            (DAY, time(12, 0)),
            (DAY, time(9, 0)),
        ]
        assert all(v.station_name == "Station 1" for v in views)


class TestOutbox:
    """Test cases for queued mirror events."""

    @pytest.mark.asyncio
    async def test_events_queued_in_order(self, booking_service):
        booking = await booking_service.create_booking(request_for())
        await booking_service.complete_booking(booking.id)

        events = booking_service.drain_outbox()

        assert [e.action for e in events] == [MirrorEvent.RECORD, MirrorEvent.MARK_COMPLETED]
        assert events[0].record.status == "confirmed"
        assert events[1].record.status == "completed"
        assert events[1].record.station_name == "Station 1"
        assert booking_service.drain_outbox() == []

    @pytest.mark.asyncio
    async def test_rejected_booking_queues_nothing(self, booking_service):
        await booking_service.create_booking(request_for())
        booking_service.drain_outbox()

        with pytest.raises(BookingConflictError):
            await booking_service.create_booking(request_for(name="Bob"))

        assert booking_service.drain_outbox() == []
