"""In-memory repository implementations for testing and development."""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator, Dict, List, Optional, Tuple
from uuid import UUID

from src.station_booking.application.ports.repositories import BookingRepository, StationRepository
from src.station_booking.domain.entities.booking import Booking, BookingStatus
from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.exceptions import InvalidBookingStateError
from src.station_booking.domain.value_objects.booking_view import BookingView


class InMemoryStationRepository(StationRepository):
    """In-memory implementation of the station registry."""

    def __init__(self):
        self._stations: Dict[int, Station] = {}

    async def save(self, station: Station) -> Station:
        self._stations[station.id] = station
        return station

    async def find_by_id(self, station_id: int) -> Optional[Station]:
        return self._stations.get(station_id)

    async def find_all(self) -> List[Station]:
        return [self._stations[key] for key in sorted(self._stations)]

    async def count(self) -> int:
        return len(self._stations)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of booking repository.

    Stored bookings are copied on the way in and out so callers can't
    mutate state without going through the repository.
    """

    def __init__(self, station_repository: Optional[InMemoryStationRepository] = None):
        self._bookings: Dict[UUID, Booking] = {}
        self._station_repository = station_repository
        # (station, date) -> [lock, holders and waiters]; dropped when nobody needs it
        self._locks: Dict[Tuple[int, date], List] = {}

    @asynccontextmanager
    async def station_day_lock(self, station_id: int, booking_date: date) -> AsyncGenerator[None, None]:
        key = (station_id, booking_date)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    async def add(self, booking: Booking) -> Booking:
        self._bookings[booking.id] = self._copy(booking)
        return booking

    async def mark_completed(self, booking: Booking) -> Booking:
        stored = self._bookings.get(booking.id)
        if stored is None or stored.status != BookingStatus.CONFIRMED:
            raise InvalidBookingStateError(f"Booking {booking.booking_code} is no longer confirmed")
        self._bookings[booking.id] = self._copy(booking)
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return self._copy(booking) if booking else None

    async def find_view_by_id(self, booking_id: UUID) -> Optional[BookingView]:
        booking = await self.find_by_id(booking_id)
        if booking is None:
            return None
        return BookingView(booking=booking, station_name=await self._station_name(booking.station_id))

    async def find_confirmed_for_station(self, station_id: int, booking_date: date) -> List[Booking]:
        return sorted(
            (self._copy(b) for b in self._bookings.values()
             if b.station_id == station_id and b.booking_date == booking_date and b.is_confirmed),
            key=lambda b: b.start_time
        )

    async def find_confirmed_on(self, booking_date: date) -> List[Booking]:
        return sorted(
            (self._copy(b) for b in self._bookings.values()
             if b.booking_date == booking_date and b.is_confirmed),
            key=lambda b: (b.station_id, b.start_time)
        )

    async def list_with_station_names(self) -> List[BookingView]:
        ordered = sorted(
            self._bookings.values(),
            key=lambda b: (b.booking_date, b.start_time, b.created_at),
            reverse=True
        )
        return [
            BookingView(booking=self._copy(b), station_name=await self._station_name(b.station_id))
            for b in ordered
        ]

    async def _station_name(self, station_id: int) -> Optional[str]:
        if self._station_repository is None:
            return None
        station = await self._station_repository.find_by_id(station_id)
        return station.name if station else None

    @staticmethod
    def _copy(booking: Booking) -> Booking:
        return Booking(
            booking_id=booking.id,
            customer_name=booking.customer_name,
            contact=booking.contact,
            station_id=booking.station_id,
            time_range=booking.time_range,
            duration_hours=booking.duration_hours,
            total_price=booking.total_price,
            status=booking.status,
            booking_code=booking.booking_code,
            created_at=booking.created_at
        )
