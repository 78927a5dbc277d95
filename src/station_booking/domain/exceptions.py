"""Domain error taxonomy for station bookings."""

from typing import Optional


class StationBookingError(Exception):
    """Base class for all booking errors."""

    error_type = "station_booking_error"


class ValidationError(StationBookingError):
    """Missing or malformed booking data."""

    error_type = "validation_error"


class StationNotFoundError(ValidationError):
    """Booking references a station that does not exist."""

    error_type = "station_not_found"

    def __init__(self, station_id: int):
        super().__init__(f"Station not found: {station_id}")
        self.station_id = station_id


class BookingConflictError(StationBookingError):
    """Candidate window overlaps a confirmed booking."""

    error_type = "conflict_error"

    def __init__(self, message: str, conflicting_codes: Optional[list] = None):
        super().__init__(message)
        self.conflicting_codes = conflicting_codes or []


class NotFoundError(StationBookingError):
    """Requested record does not exist."""

    error_type = "not_found"


class BookingNotFoundError(NotFoundError):
    """Booking does not exist."""

    def __init__(self, booking_id):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class InvalidBookingStateError(StationBookingError):
    """Requested status transition is not allowed."""

    error_type = "invalid_state"


class StoreUnavailableError(StationBookingError):
    """Underlying persistence is unreachable."""

    error_type = "store_unavailable"


class MirrorSinkError(StationBookingError):
    """Failure reaching or writing the external booking mirror."""

    error_type = "mirror_sink_error"
