"""Booking entity for station reservations."""

import secrets
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from ..exceptions import InvalidBookingStateError, ValidationError
from ..value_objects.pricing import compute_total_price
from ..value_objects.time_range import TimeRange
from .station import Station


class BookingStatus(Enum):
    """Booking status enumeration."""
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


def generate_booking_code() -> str:
    """Generate an external-facing booking token such as ``BK-4F09A1C2``."""
    return f"BK-{secrets.token_hex(4).upper()}"


class Booking:
    """Booking entity representing one station reserved for one time range."""

    def __init__(
        self,
        customer_name: str,
        station_id: int,
        time_range: TimeRange,
        duration_hours: Decimal,
        total_price: Decimal,
        contact: Optional[str] = None,
        booking_id: Optional[UUID] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
        booking_code: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        self._id = booking_id or uuid4()
        self._customer_name = customer_name
        self._contact = contact or None
        self._station_id = station_id
        self._time_range = time_range
        self._duration_hours = duration_hours
        self._total_price = total_price
        self._status = status
        self._booking_code = booking_code or generate_booking_code()
        self._created_at = created_at or datetime.utcnow()

    @classmethod
    def reserve(
        cls,
        customer_name: str,
        station: Station,
        time_range: TimeRange,
        contact: Optional[str] = None,
        created_at: Optional[datetime] = None
    ) -> "Booking":
        """Create a confirmed booking, pricing it from the station rate."""
        name = (customer_name or "").strip()
        if not name:
            raise ValidationError("Customer name is required")

        duration = time_range.duration_hours
        if duration <= 0:
            raise ValidationError("Booking duration must be positive")

        return cls(
            customer_name=name,
            contact=(contact or "").strip() or None,
            station_id=station.id,
            time_range=time_range,
            duration_hours=duration,
            total_price=compute_total_price(duration, station.rate_per_hour),
            status=BookingStatus.CONFIRMED,
            created_at=created_at
        )

    @property
    def id(self) -> UUID:
        """Get booking ID."""
        return self._id

    @property
    def customer_name(self) -> str:
        return self._customer_name

    @property
    def contact(self) -> Optional[str]:
        return self._contact

    @property
    def station_id(self) -> int:
        return self._station_id

    @property
    def time_range(self) -> TimeRange:
        return self._time_range

    @property
    def booking_date(self) -> date:
        return self._time_range.booking_date

    @property
    def start_time(self) -> time:
        return self._time_range.start_time

    @property
    def end_time(self) -> time:
        return self._time_range.end_time

    @property
    def duration_hours(self) -> Decimal:
        return self._duration_hours

    @property
    def total_price(self) -> Decimal:
        return self._total_price

    @property
    def status(self) -> BookingStatus:
        """Get booking status."""
        return self._status

    @property
    def booking_code(self) -> str:
        return self._booking_code

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def is_confirmed(self) -> bool:
        return self._status == BookingStatus.CONFIRMED

    def complete(self) -> None:
        """Mark booking as completed."""
        if self._status != BookingStatus.CONFIRMED:
            raise InvalidBookingStateError(
                f"Booking {self._booking_code} is already {self._status.value}"
            )
        self._status = BookingStatus.COMPLETED

    def __eq__(self, other: object) -> bool:
        """Check equality based on booking ID."""
        if not isinstance(other, Booking):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        """Hash based on booking ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Booking({self._booking_code}, station={self._station_id}, {self._status.value})"
