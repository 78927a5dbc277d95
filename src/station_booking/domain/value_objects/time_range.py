"""Time range value object for station reservations."""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP

from ..exceptions import ValidationError

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class TimeRange:
    """Immutable half-open [start_time, end_time) window on a single date."""

    booking_date: date
    start_time: time
    end_time: time

    def __post_init__(self) -> None:
        """Validate time range data."""
        if self.start_time.tzinfo is not None or self.end_time.tzinfo is not None:
            raise ValidationError("Times must be local wall-clock times without a UTC offset")
        if self.end_time <= self.start_time:
            raise ValidationError("End time must be after start time")

    @property
    def datetime_start(self) -> datetime:
        """Get start datetime combining date and start_time."""
        return datetime.combine(self.booking_date, self.start_time)

    @property
    def datetime_end(self) -> datetime:
        """Get end datetime combining date and end_time."""
        return datetime.combine(self.booking_date, self.end_time)

    @property
    def duration_minutes(self) -> int:
        """Whole minutes covered by the range."""
        return int((self.datetime_end - self.datetime_start).total_seconds() // 60)

    @property
    def duration_hours(self) -> Decimal:
        """Duration in hours rounded to two decimal places."""
        seconds = Decimal(int((self.datetime_end - self.datetime_start).total_seconds()))
        return (seconds / Decimal(3600)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check whether two ranges on the same date share any instant."""
        if self.booking_date != other.booking_date:
            return False
        return not (self.end_time <= other.start_time or self.start_time >= other.end_time)

    def contains(self, moment: datetime) -> bool:
        """Check whether a wall-clock moment falls inside the range."""
        return self.datetime_start <= moment < self.datetime_end

    def format_time_range(self) -> str:
        """Get formatted time range string."""
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    @property
    def time_range(self) -> str:
        """Get formatted time range string as property."""
        return self.format_time_range()
