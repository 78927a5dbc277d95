"""Pydantic schemas for station and dashboard responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.value_objects.live_status import LiveStatus
from .booking_schemas import BookingResponse


class StationResponse(BaseModel):
    """Station, optionally annotated with availability for a requested window."""
    id: int
    name: str
    specs: str
    rate_per_hour: float
    available: Optional[bool] = Field(None, description="Free for the whole requested window")

    @classmethod
    def from_station(cls, station: Station, available: Optional[bool] = None) -> "StationResponse":
        return cls(
            id=station.id,
            name=station.name,
            specs=station.specs,
            rate_per_hour=float(station.rate_per_hour),
            available=available
        )


class StationStatusResponse(BaseModel):
    """Live occupancy of a station."""
    id: int
    name: str
    specs: str
    rate_per_hour: float
    status: str = Field(..., description="AVAILABLE or OCCUPIED")
    current_booking: Optional[BookingResponse] = None
    time_remaining_minutes: Optional[int] = None
    time_remaining: Optional[str] = Field(None, description="Formatted as 1h 5m")

    @classmethod
    def from_live_status(cls, live: LiveStatus) -> "StationStatusResponse":
        station = live.station
        current = None
        if live.occupying_booking is not None:
            current = BookingResponse.from_booking(live.occupying_booking, station.name)
        return cls(
            id=station.id,
            name=station.name,
            specs=station.specs,
            rate_per_hour=float(station.rate_per_hour),
            status=live.state.value,
            current_booking=current,
            time_remaining_minutes=live.time_remaining_minutes,
            time_remaining=live.time_remaining_display
        )


class DashboardResponse(BaseModel):
    """Everything the polling booking screen renders."""
    generated_at: datetime
    refresh_after_seconds: int
    stations: List[StationStatusResponse]
    bookings: List[BookingResponse]
