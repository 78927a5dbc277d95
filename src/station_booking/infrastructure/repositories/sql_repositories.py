"""SQLAlchemy repository implementations."""

from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.station_booking.application.ports.repositories import BookingRepository, StationRepository
from src.station_booking.domain.entities.booking import Booking, BookingStatus
from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.exceptions import InvalidBookingStateError
from src.station_booking.domain.value_objects.booking_view import BookingView
from src.station_booking.domain.value_objects.time_range import TimeRange
from src.station_booking.infrastructure.database.models import BookingModel, StationModel
from src.station_booking.infrastructure.logging import get_logger, log_database_operation


class SQLAlchemyStationRepository(StationRepository):
    """SQLAlchemy implementation of the station registry."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, station: Station) -> Station:
        """Insert or overwrite a seeded station."""
        log_database_operation(self._logger, "UPSERT", "StationModel", station_id=station.id)
        await self._session.merge(StationModel(
            id=station.id,
            name=station.name,
            specs=station.specs,
            rate_per_hour=station.rate_per_hour
        ))
        await self._session.flush()
        return station

    async def find_by_id(self, station_id: int) -> Optional[Station]:
        """Find station by ID."""
        model = await self._session.get(StationModel, station_id)
        if not model:
            return None
        return self._model_to_entity(model)

    async def find_all(self) -> List[Station]:
        """Find all stations ordered by ID."""
        result = await self._session.execute(select(StationModel).order_by(StationModel.id))
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def count(self) -> int:
        """Count registered stations."""
        result = await self._session.execute(select(func.count(StationModel.id)))
        return result.scalar() or 0

    @staticmethod
    def _model_to_entity(model: StationModel) -> Station:
        return Station(
            station_id=model.id,
            name=model.name,
            specs=model.specs or "",
            rate_per_hour=model.rate_per_hour
        )


class SQLAlchemyBookingRepository(BookingRepository):
    """SQLAlchemy implementation of booking repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    @asynccontextmanager
    async def station_day_lock(self, station_id: int, booking_date: date) -> AsyncGenerator[None, None]:
        """Lock the station row until the surrounding transaction ends.

        Locking the whole station is coarser than station+date but keeps
        the lock on a row that always exists. SQLite ignores FOR UPDATE;
        there the database manager serializes sessions instead.
        """
        log_database_operation(
            self._logger,
            "LOCK",
            "StationModel",
            station_id=station_id,
            booking_date=str(booking_date)
        )
        stmt = select(StationModel.id).where(StationModel.id == station_id).with_for_update()
        await self._session.execute(stmt)
        yield

    async def add(self, booking: Booking) -> Booking:
        """Insert a new booking."""
        log_database_operation(self._logger, "INSERT", "BookingModel", booking_code=booking.booking_code)
        self._session.add(BookingModel(
            id=booking.id,
            station_id=booking.station_id,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            customer_name=booking.customer_name,
            contact=booking.contact,
            duration_hours=booking.duration_hours,
            total_price=booking.total_price,
            status=booking.status,
            booking_code=booking.booking_code,
            created_at=booking.created_at
        ))
        await self._session.flush()
        return booking

    async def mark_completed(self, booking: Booking) -> Booking:
        """Conditional update so two concurrent completions cannot both win."""
        log_database_operation(self._logger, "UPDATE", "BookingModel", booking_code=booking.booking_code)
        stmt = (
            update(BookingModel)
            .where(
                BookingModel.id == booking.id,
                BookingModel.status == BookingStatus.CONFIRMED
            )
            .values(status=BookingStatus.COMPLETED)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise InvalidBookingStateError(f"Booking {booking.booking_code} is no longer confirmed")
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        result = await self._session.execute(select(BookingModel).where(BookingModel.id == booking_id))
        model = result.scalar_one_or_none()
        if not model:
            return None
        return self._model_to_entity(model)

    async def find_view_by_id(self, booking_id: UUID) -> Optional[BookingView]:
        """Find booking by ID joined with its station name."""
        stmt = self._view_query().where(BookingModel.id == booking_id)
        row = (await self._session.execute(stmt)).first()
        if not row:
            return None
        return BookingView(booking=self._model_to_entity(row[0]), station_name=row[1])

    async def find_confirmed_for_station(self, station_id: int, booking_date: date) -> List[Booking]:
        """Find confirmed bookings for one station on one date."""
        log_database_operation(
            self._logger,
            "SELECT",
            "BookingModel",
            station_id=station_id,
            booking_date=str(booking_date),
            purpose="conflict_check"
        )
        stmt = select(BookingModel).where(
            BookingModel.station_id == station_id,
            BookingModel.booking_date == booking_date,
            BookingModel.status == BookingStatus.CONFIRMED
        ).order_by(BookingModel.start_time)
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def find_confirmed_on(self, booking_date: date) -> List[Booking]:
        """Find confirmed bookings for every station on one date."""
        stmt = select(BookingModel).where(
            BookingModel.booking_date == booking_date,
            BookingModel.status == BookingStatus.CONFIRMED
        ).order_by(BookingModel.station_id, BookingModel.start_time)
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def list_with_station_names(self) -> List[BookingView]:
        """All bookings, newest date and start time first."""
        stmt = self._view_query().order_by(
            BookingModel.booking_date.desc(),
            BookingModel.start_time.desc(),
            BookingModel.created_at.desc()
        )
        result = await self._session.execute(stmt)
        return [
            BookingView(booking=self._model_to_entity(model), station_name=station_name)
            for model, station_name in result.all()
        ]

    @staticmethod
    def _view_query():
        return select(BookingModel, StationModel.name).outerjoin(
            StationModel, StationModel.id == BookingModel.station_id
        )

    @staticmethod
    def _model_to_entity(model: BookingModel) -> Booking:
        """Convert database model to domain entity."""
        return Booking(
            booking_id=model.id,
            customer_name=model.customer_name,
            contact=model.contact,
            station_id=model.station_id,
            time_range=TimeRange(
                booking_date=model.booking_date,
                start_time=model.start_time,
                end_time=model.end_time
            ),
            duration_hours=model.duration_hours,
            total_price=model.total_price,
            status=model.status,
            booking_code=model.booking_code,
            created_at=model.created_at
        )
