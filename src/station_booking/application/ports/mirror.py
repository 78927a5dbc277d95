"""Port interface for the best-effort booking mirror."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from src.station_booking.domain.entities.booking import Booking


MIRROR_COLUMNS = [
    "booking_code",
    "customer_name",
    "station_name",
    "booking_date",
    "start_time",
    "end_time",
    "duration_hours",
    "total_price",
    "status",
]


@dataclass(frozen=True)
class MirrorRecord:
    """Denormalized copy of a booking as it appears in the external ledger."""

    booking_code: str
    customer_name: str
    station_name: str
    booking_date: str
    start_time: str
    end_time: str
    duration_hours: str
    total_price: str
    status: str

    @classmethod
    def from_booking(cls, booking: "Booking", station_name: str) -> "MirrorRecord":
        return cls(
            booking_code=booking.booking_code,
            customer_name=booking.customer_name,
            station_name=station_name,
            booking_date=booking.booking_date.isoformat(),
            start_time=booking.start_time.strftime("%H:%M"),
            end_time=booking.end_time.strftime("%H:%M"),
            duration_hours=str(booking.duration_hours),
            total_price=str(booking.total_price),
            status=booking.status.value,
        )

    def as_row(self) -> List[str]:
        return [getattr(self, column) for column in MIRROR_COLUMNS]

    def matches_heuristically(self, row: List[str]) -> bool:
        """Degraded match on station, date, start time and customer name.

        Lossy: two bookings sharing all four fields cannot be told apart.
        """
        padded = list(row) + [""] * (len(MIRROR_COLUMNS) - len(row))
        values = dict(zip(MIRROR_COLUMNS, (str(v or "").strip() for v in padded)))
        return (
            values["station_name"] == self.station_name
            and values["booking_date"] == self.booking_date
            and values["start_time"] == self.start_time
            and values["customer_name"].lower() == self.customer_name.lower()
        )


class MirrorSink(ABC):
    """External, non-authoritative replica of booking records.

    Implementations are blocking and are driven from worker threads by the
    mirror notifier. Any failure must surface as ``MirrorSinkError``.
    """

    name = "mirror"

    @abstractmethod
    def record(self, record: MirrorRecord) -> None:
        """Append a row for a newly created booking."""
        raise NotImplementedError

    @abstractmethod
    def mark_completed(self, record: MirrorRecord) -> bool:
        """Update the matching row's status in place.

        Returns False when no matching row exists.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any resources held by the sink."""


@dataclass(frozen=True)
class MirrorEvent:
    """Pending replication for one committed booking change."""

    action: str
    record: MirrorRecord

    RECORD = "record"
    MARK_COMPLETED = "mark_completed"

    @classmethod
    def created(cls, record: MirrorRecord) -> "MirrorEvent":
        return cls(action=cls.RECORD, record=record)

    @classmethod
    def completed(cls, record: MirrorRecord) -> "MirrorEvent":
        return cls(action=cls.MARK_COMPLETED, record=record)
