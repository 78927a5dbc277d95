"""Dependency injection and service factory."""

from collections import namedtuple
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Callable, Optional

from src.station_booking.application.ports.mirror import MirrorSink
from src.station_booking.application.services.booking_service import BookingService
from src.station_booking.application.services.station_service import CafeClock, StationService
from src.station_booking.domain.exceptions import MirrorSinkError
from src.station_booking.domain.value_objects.pricing import parse_rate_tiers
from src.station_booking.infrastructure.database.connection import DatabaseManager
from src.station_booking.infrastructure.database.models import Base
from src.station_booking.infrastructure.logging import get_logger
from src.station_booking.infrastructure.mirror.google_sheets_sink import GoogleSheetsMirrorSink, parse_service_account
from src.station_booking.infrastructure.mirror.notifier import MirrorNotifier, NullMirrorSink
from src.station_booking.infrastructure.mirror.workbook_sink import WorkbookMirrorSink
from src.station_booking.infrastructure.repositories.memory_repositories import (
    InMemoryBookingRepository,
    InMemoryStationRepository
)
from src.station_booking.infrastructure.repositories.sql_repositories import (
    SQLAlchemyBookingRepository,
    SQLAlchemyStationRepository
)
from src.station_booking.infrastructure.seed import build_seed_stations, seed_stations

logger = get_logger(__name__)

MEMORY_URL_PREFIX = "memory://"

Services = namedtuple("Services", ["bookings", "stations"])


def build_mirror_sink(settings) -> MirrorSink:
    """Pick the mirror backend from settings; missing config means no mirror."""
    backend = settings.mirror_backend

    if backend in ("auto", "google_sheets"):
        if settings.google_sheet_id and settings.google_creds_json:
            try:
                credentials = parse_service_account(settings.google_creds_json)
            except MirrorSinkError as exc:
                logger.warning("Google Sheets mirror disabled", extra={"reason": str(exc)})
                return NullMirrorSink()
            return GoogleSheetsMirrorSink(
                sheet_id=settings.google_sheet_id,
                credentials=credentials,
                worksheet_title=settings.google_worksheet_title
            )
        if backend == "google_sheets":
            logger.warning("Google Sheets mirror disabled", extra={"reason": "GOOGLE_SHEET_ID or GOOGLE_CREDS_JSON missing"})
            return NullMirrorSink()

    if backend in ("auto", "workbook"):
        if settings.mirror_workbook_path:
            return WorkbookMirrorSink(settings.mirror_workbook_path)
        if backend == "workbook":
            logger.warning("Workbook mirror disabled", extra={"reason": "MIRROR_WORKBOOK_PATH missing"})

    return NullMirrorSink()


class ServiceFactory:
    """Factory for creating application services with proper dependencies.

    ``memory://`` as the database URL keeps everything in process memory,
    which is handy for demos; any other URL goes through SQLAlchemy.
    """

    def __init__(
        self,
        settings,
        mirror_sink: Optional[MirrorSink] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._settings = settings
        self._in_memory = settings.database_url.startswith(MEMORY_URL_PREFIX)
        self.database_manager = None if self._in_memory else DatabaseManager(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=settings.db_pool_pre_ping,
            sqlite_busy_timeout=settings.sqlite_busy_timeout
        )
        self._memory_stations = InMemoryStationRepository()
        self._memory_bookings = InMemoryBookingRepository(self._memory_stations)
        self.notifier = MirrorNotifier(mirror_sink or build_mirror_sink(settings))
        self.clock = clock or CafeClock(settings.cafe_timezone).now
        self._connected = False

    @property
    def settings(self):
        return self._settings

    async def initialize(self) -> None:
        """Connect, create tables if configured, and seed stations."""
        if self._connected:
            return
        if self.database_manager is not None:
            await self.database_manager.connect()
            if self._settings.database_auto_create:
                await self.database_manager.create_all(Base.metadata)
        self._connected = True

        seed = build_seed_stations(
            self._settings.seed_station_specs,
            parse_rate_tiers(self._settings.specs_rates),
            self._settings.default_rate_per_hour
        )
        async with self._repositories() as (stations, _):
            await seed_stations(stations, seed)
        logger.info(
            "Services initialized",
            extra={"in_memory": self._in_memory, "mirror_sink": self.notifier.sink.name}
        )

    async def shutdown(self) -> None:
        """Flush pending mirror writes and close the database."""
        await self.notifier.close()
        if self._connected and self.database_manager is not None:
            await self.database_manager.disconnect()
        self._connected = False

    @asynccontextmanager
    async def _repositories(self):
        if self._in_memory:
            yield self._memory_stations, self._memory_bookings
            return

        async with self.database_manager.get_session() as session:
            yield SQLAlchemyStationRepository(session), SQLAlchemyBookingRepository(session)

    @asynccontextmanager
    async def get_services(self) -> AsyncGenerator[Services, None]:
        """Booking and station services sharing one transaction.

        Mirror events are published only after the transaction commits.
        """
        async with self._repositories() as (stations, bookings):
            booking_service = BookingService(
                booking_repository=bookings,
                station_repository=stations
            )
            station_service = StationService(
                station_repository=stations,
                booking_repository=bookings,
                clock=self.clock
            )
            yield Services(bookings=booking_service, stations=station_service)
        self.notifier.publish(booking_service.drain_outbox())

    @asynccontextmanager
    async def get_booking_service(self) -> AsyncGenerator[BookingService, None]:
        """Get booking service with database repositories."""
        async with self.get_services() as services:
            yield services.bookings

    @asynccontextmanager
    async def get_station_service(self) -> AsyncGenerator[StationService, None]:
        """Get station service with database repositories."""
        async with self.get_services() as services:
            yield services.stations
