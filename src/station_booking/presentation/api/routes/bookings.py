"""Booking endpoints with database integration."""

from datetime import date as Date, datetime, time as Time, timedelta
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from ..dependencies import get_service_factory
from ..schemas.booking_schemas import (
    BatchBookingRequest,
    BatchBookingResponse,
    BatchFailure,
    BookingCreateRequest,
    BookingResponse,
)
from ....application.services.booking_service import BookingRequest
from ....domain.exceptions import ValidationError
from ....infrastructure.services import ServiceFactory

router = APIRouter()


def _reject_past_start(factory: ServiceFactory, booking_date: Date, start_time: Time) -> None:
    """Refuse windows that already started; the store itself accepts them."""
    settings = factory.settings
    if not settings.reject_past_bookings:
        return
    grace = timedelta(seconds=settings.past_booking_grace_seconds)
    if datetime.combine(booking_date, start_time) < factory.clock() - grace:
        raise ValidationError("Cannot book for past dates/times")


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    factory: ServiceFactory = Depends(get_service_factory)
) -> List[BookingResponse]:
    """All bookings with station names, newest first."""
    async with factory.get_booking_service() as booking_service:
        views = await booking_service.list_with_station_names()
    return [BookingResponse.from_view(view) for view in views]


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    request: BookingCreateRequest,
    factory: ServiceFactory = Depends(get_service_factory)
) -> BookingResponse:
    """Reserve one station for a time window."""
    _reject_past_start(factory, request.booking_date, request.start_time)

    async with factory.get_booking_service() as booking_service:
        booking = await booking_service.create_booking(BookingRequest(
            customer_name=request.customer_name,
            contact=request.contact,
            station_id=request.station_id,
            booking_date=request.booking_date,
            start_time=request.start_time,
            end_time=request.end_time
        ))
        view = await booking_service.get_booking(booking.id)

    return BookingResponse.from_view(view)


@router.post("/batch", response_model=BatchBookingResponse)
async def create_bookings(
    request: BatchBookingRequest,
    factory: ServiceFactory = Depends(get_service_factory)
) -> BatchBookingResponse:
    """Reserve the same window on several stations; failures are reported per station."""
    _reject_past_start(factory, request.booking_date, request.start_time)

    async with factory.get_services() as services:
        stations = {station.id: station.name for station in await services.stations.list_stations()}
        result = await services.bookings.create_bookings(
            BookingRequest(
                customer_name=request.customer_name,
                contact=request.contact,
                station_id=None,
                booking_date=request.booking_date,
                start_time=request.start_time,
                end_time=request.end_time
            ),
            request.station_ids
        )

    return BatchBookingResponse(
        created=[BookingResponse.from_booking(b, stations.get(b.station_id)) for b in result.created],
        failed=[
            BatchFailure(station_id=station_id, error=str(exc), type=exc.error_type)
            for station_id, exc in sorted(result.failed.items())
        ]
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    factory: ServiceFactory = Depends(get_service_factory)
) -> BookingResponse:
    """Get booking by ID."""
    async with factory.get_booking_service() as booking_service:
        view = await booking_service.get_booking(booking_id)
    return BookingResponse.from_view(view)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    factory: ServiceFactory = Depends(get_service_factory)
) -> BookingResponse:
    """Mark a confirmed booking as completed, freeing the station."""
    async with factory.get_booking_service() as booking_service:
        await booking_service.complete_booking(booking_id)
        view = await booking_service.get_booking(booking_id)
    return BookingResponse.from_view(view)
