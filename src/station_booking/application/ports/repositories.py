"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from datetime import date
from typing import AsyncContextManager, List, Optional, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.station_booking.domain.entities.booking import Booking
    from src.station_booking.domain.entities.station import Station
    from src.station_booking.domain.value_objects.booking_view import BookingView


class StationRepository(ABC):
    """Port interface for the station registry."""

    @abstractmethod
    async def save(self, station: "Station") -> "Station":
        """Save a station (seed time only)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, station_id: int) -> Optional["Station"]:
        """Find station by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_all(self) -> List["Station"]:
        """Find all stations ordered by ID."""
        raise NotImplementedError

    @abstractmethod
    async def count(self) -> int:
        """Count registered stations."""
        raise NotImplementedError


class BookingRepository(ABC):
    """Port interface for booking repository."""

    @abstractmethod
    def station_day_lock(self, station_id: int, booking_date: date) -> AsyncContextManager[None]:
        """Serialize check-then-insert for one station and date.

        Everything executed inside the context must see every booking
        committed by a previous holder of the same key.
        """
        raise NotImplementedError

    @abstractmethod
    async def add(self, booking: "Booking") -> "Booking":
        """Insert a new booking."""
        raise NotImplementedError

    @abstractmethod
    async def mark_completed(self, booking: "Booking") -> "Booking":
        """Persist a confirmed -> completed transition.

        Raises InvalidBookingStateError if the stored row is no longer confirmed.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional["Booking"]:
        """Find booking by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_view_by_id(self, booking_id: UUID) -> Optional["BookingView"]:
        """Find booking by ID joined with its station name."""
        raise NotImplementedError

    @abstractmethod
    async def find_confirmed_for_station(self, station_id: int, booking_date: date) -> List["Booking"]:
        """Find confirmed bookings for one station on one date."""
        raise NotImplementedError

    @abstractmethod
    async def find_confirmed_on(self, booking_date: date) -> List["Booking"]:
        """Find confirmed bookings for every station on one date."""
        raise NotImplementedError

    @abstractmethod
    async def list_with_station_names(self) -> List["BookingView"]:
        """All bookings, newest date and start time first."""
        raise NotImplementedError
