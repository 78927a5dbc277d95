"""Station registry and availability use cases."""

from datetime import datetime
from typing import Callable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from ..ports.repositories import BookingRepository, StationRepository
from ...domain.entities.station import Station
from ...domain.services.availability import compute_live_statuses, compute_window_availability
from ...domain.value_objects.live_status import LiveStatus
from ...domain.value_objects.time_range import TimeRange


class CafeClock:
    """Wall clock in the cafe's local time, as naive datetimes."""

    def __init__(self, timezone: str = "UTC"):
        self._zone = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._zone).replace(tzinfo=None)


class StationService:
    """Application service for station listing and occupancy."""

    def __init__(
        self,
        station_repository: StationRepository,
        booking_repository: BookingRepository,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._station_repository = station_repository
        self._booking_repository = booking_repository
        self._clock = clock or CafeClock().now

    def now(self) -> datetime:
        return self._clock()

    async def list_stations(self) -> List[Station]:
        """All stations ordered by ID."""
        return await self._station_repository.find_all()

    async def list_stations_for_window(self, window: TimeRange) -> List[Tuple[Station, bool]]:
        """Stations paired with whether they are free for the whole window."""
        stations = await self._station_repository.find_all()
        bookings = await self._booking_repository.find_confirmed_on(window.booking_date)
        availability = compute_window_availability(stations, window, bookings)
        return [(station, availability[station.id]) for station in stations]

    async def live_statuses(self, now: Optional[datetime] = None) -> List[LiveStatus]:
        """Current occupancy of every station."""
        moment = now or self._clock()
        stations = await self._station_repository.find_all()
        bookings = await self._booking_repository.find_confirmed_on(moment.date())
        return compute_live_statuses(stations, moment, bookings)
