"""Booking service implementing the reservation use cases."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from ..ports.mirror import MirrorEvent, MirrorRecord
from ..ports.repositories import BookingRepository, StationRepository
from ...domain.entities.booking import Booking
from ...domain.exceptions import (
    BookingConflictError,
    BookingNotFoundError,
    StationBookingError,
    StationNotFoundError,
    ValidationError,
)
from ...domain.services.availability import find_conflicts
from ...domain.value_objects.booking_view import BookingView
from ...domain.value_objects.time_range import TimeRange
from ...infrastructure.logging import get_logger, log_business_rule_violation

logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    """Input for a new reservation."""

    customer_name: Optional[str]
    station_id: Optional[int]
    booking_date: Optional[date]
    start_time: Optional[time]
    end_time: Optional[time]
    contact: Optional[str] = None

    def missing_fields(self) -> List[str]:
        missing = []
        if not (self.customer_name or "").strip():
            missing.append("customer_name")
        for name in ("station_id", "booking_date", "start_time", "end_time"):
            if getattr(self, name) is None:
                missing.append(name)
        return missing


@dataclass
class BatchBookingResult:
    """Outcome of booking the same window on several stations."""

    created: List[Booking] = field(default_factory=list)
    failed: Dict[int, StationBookingError] = field(default_factory=dict)


class BookingService:
    """Application service for booking management.

    Mirror notifications are queued in an outbox and only handed to the
    notifier by the caller once the surrounding transaction has committed.
    """

    def __init__(
        self,
        booking_repository: BookingRepository,
        station_repository: StationRepository
    ):
        self._booking_repository = booking_repository
        self._station_repository = station_repository
        self._outbox: List[MirrorEvent] = []

    async def create_booking(self, request: BookingRequest) -> Booking:
        """Validate, conflict-check and persist a new confirmed booking."""
        missing = request.missing_fields()
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        time_range = TimeRange(
            booking_date=request.booking_date,
            start_time=request.start_time,
            end_time=request.end_time
        )

        station = await self._station_repository.find_by_id(request.station_id)
        if station is None:
            raise StationNotFoundError(request.station_id)

        booking = Booking.reserve(
            customer_name=request.customer_name,
            station=station,
            time_range=time_range,
            contact=request.contact
        )

        async with self._booking_repository.station_day_lock(station.id, time_range.booking_date):
            existing = await self._booking_repository.find_confirmed_for_station(
                station.id, time_range.booking_date
            )
            conflicts = find_conflicts(
                station.id,
                time_range.booking_date,
                time_range.start_time,
                time_range.end_time,
                existing
            )
            if conflicts:
                clash = conflicts[0]
                log_business_rule_violation(
                    logger,
                    "no_overlapping_bookings",
                    f"{station.name} {time_range.booking_date} {time_range.time_range} "
                    f"overlaps {clash.booking_code}",
                    station_id=station.id,
                    conflicting_codes=[b.booking_code for b in conflicts]
                )
                raise BookingConflictError(
                    f"{station.name} is already booked {clash.time_range.time_range} "
                    f"on {time_range.booking_date.isoformat()}",
                    conflicting_codes=[b.booking_code for b in conflicts]
                )

            saved = await self._booking_repository.add(booking)

        self._outbox.append(MirrorEvent.created(MirrorRecord.from_booking(saved, station.name)))
        logger.info(
            "Booking created",
            extra={
                "booking_code": saved.booking_code,
                "station_id": station.id,
                "booking_date": str(time_range.booking_date),
                "time_range": time_range.time_range,
                "total_price": str(saved.total_price)
            }
        )
        return saved

    async def create_bookings(self, request: BookingRequest, station_ids: Sequence[int]) -> BatchBookingResult:
        """Book the same window on several stations; each station succeeds or fails on its own.

        Stations are processed in ascending id order so concurrent batches
        acquire station locks in a consistent order.
        """
        if not station_ids:
            raise ValidationError("Select at least one station")

        result = BatchBookingResult()
        for station_id in sorted(set(station_ids)):
            single = BookingRequest(
                customer_name=request.customer_name,
                contact=request.contact,
                station_id=station_id,
                booking_date=request.booking_date,
                start_time=request.start_time,
                end_time=request.end_time
            )
            try:
                result.created.append(await self.create_booking(single))
            except (ValidationError, BookingConflictError) as exc:
                result.failed[station_id] = exc
        return result

    async def complete_booking(self, booking_id: UUID) -> Booking:
        """Transition a confirmed booking to completed."""
        booking = await self._booking_repository.find_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)

        try:
            booking.complete()
        except StationBookingError as exc:
            log_business_rule_violation(
                logger,
                "complete_only_confirmed",
                str(exc),
                booking_code=booking.booking_code
            )
            raise

        saved = await self._booking_repository.mark_completed(booking)

        station = await self._station_repository.find_by_id(saved.station_id)
        station_name = station.name if station else str(saved.station_id)
        self._outbox.append(MirrorEvent.completed(MirrorRecord.from_booking(saved, station_name)))
        logger.info("Booking completed", extra={"booking_code": saved.booking_code})
        return saved

    async def get_booking(self, booking_id: UUID) -> BookingView:
        """Get a specific booking by ID with its station name."""
        view = await self._booking_repository.find_view_by_id(booking_id)
        if view is None:
            raise BookingNotFoundError(booking_id)
        return view

    async def list_with_station_names(self) -> List[BookingView]:
        """All bookings, newest first."""
        return await self._booking_repository.list_with_station_names()

    async def confirmed_bookings_on(self, target_date: date) -> List[Booking]:
        """Confirmed bookings for every station on a date."""
        return await self._booking_repository.find_confirmed_on(target_date)

    def drain_outbox(self) -> List[MirrorEvent]:
        """Hand over queued mirror events and clear the queue."""
        events, self._outbox = self._outbox, []
        return events
