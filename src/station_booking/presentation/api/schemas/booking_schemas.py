"""Pydantic schemas for booking API requests and responses."""

from datetime import date as Date, datetime, time as Time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.station_booking.domain.entities.booking import Booking
from src.station_booking.domain.value_objects.booking_view import BookingView


def normalize_contact(value: Optional[str]) -> Optional[str]:
    """Trim surrounding whitespace; a phone number or an email is stored as given."""
    if value is None:
        return None
    return value.strip() or None


def reject_utc_offset(value: Time) -> Time:
    """Booking times are cafe wall-clock times and carry no UTC offset."""
    if value.tzinfo is not None:
        raise ValueError("Times must be local wall-clock times without a UTC offset")
    return value


class BookingCreateRequest(BaseModel):
    """Request model for creating a booking."""
    customer_name: str = Field(..., max_length=120, description="Name the booking is held under")
    contact: Optional[str] = Field(None, max_length=60, description="Phone number or other contact")
    station_id: int = Field(..., ge=1, description="Station to reserve")
    booking_date: Date = Field(..., description="Calendar date of the session")
    start_time: Time = Field(..., description="Start time, HH:MM")
    end_time: Time = Field(..., description="End time, HH:MM, same day")

    @field_validator('contact')
    @classmethod
    def clean_contact(cls, v):
        return normalize_contact(v)

    @field_validator('start_time', 'end_time')
    @classmethod
    def naive_times(cls, v):
        return reject_utc_offset(v)


class BatchBookingRequest(BaseModel):
    """Request model for booking the same window on several stations."""
    customer_name: str = Field(..., max_length=120)
    contact: Optional[str] = Field(None, max_length=60)
    station_ids: List[int] = Field(..., min_length=1, description="Stations to reserve")
    booking_date: Date
    start_time: Time
    end_time: Time

    @field_validator('contact')
    @classmethod
    def clean_contact(cls, v):
        return normalize_contact(v)

    @field_validator('start_time', 'end_time')
    @classmethod
    def naive_times(cls, v):
        return reject_utc_offset(v)


class BookingResponse(BaseModel):
    """Response model for booking operations."""
    id: UUID
    booking_code: str
    customer_name: str
    contact: Optional[str] = None
    station_id: int
    station_name: Optional[str] = None
    booking_date: Date
    start_time: str = Field(..., description="Start time in HH:MM format")
    end_time: str = Field(..., description="End time in HH:MM format")
    duration_hours: float
    total_price: float
    status: str
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking, station_name: Optional[str] = None) -> "BookingResponse":
        return cls(
            id=booking.id,
            booking_code=booking.booking_code,
            customer_name=booking.customer_name,
            contact=booking.contact,
            station_id=booking.station_id,
            station_name=station_name,
            booking_date=booking.booking_date,
            start_time=booking.start_time.strftime("%H:%M"),
            end_time=booking.end_time.strftime("%H:%M"),
            duration_hours=float(booking.duration_hours),
            total_price=float(booking.total_price),
            status=booking.status.value,
            created_at=booking.created_at
        )

    @classmethod
    def from_view(cls, view: BookingView) -> "BookingResponse":
        return cls.from_booking(view.booking, view.station_name)


class BatchFailure(BaseModel):
    """One station that could not be booked."""
    station_id: int
    error: str
    type: str


class BatchBookingResponse(BaseModel):
    """Per-station outcome of a batch booking."""
    created: List[BookingResponse]
    failed: List[BatchFailure]
