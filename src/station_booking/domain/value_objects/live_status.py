"""Derived occupancy state of a station."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities.booking import Booking
    from ..entities.station import Station


class StationState(Enum):
    """Point-in-time occupancy of a station."""
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"


def format_minutes(minutes: int) -> str:
    """Render minutes as ``"1h 5m"`` or ``"45m"``."""
    hours, rem = divmod(max(0, minutes), 60)
    if hours > 0:
        return f"{hours}h {rem}m"
    return f"{rem}m"


@dataclass(frozen=True)
class LiveStatus:
    """Occupancy of one station, recomputed on every request and never stored."""

    station: "Station"
    state: StationState
    occupying_booking: Optional["Booking"] = None
    time_remaining_minutes: Optional[int] = None

    @classmethod
    def available(cls, station: "Station") -> "LiveStatus":
        return cls(station=station, state=StationState.AVAILABLE)

    @classmethod
    def occupied(cls, station: "Station", booking: "Booking", minutes: int) -> "LiveStatus":
        return cls(
            station=station,
            state=StationState.OCCUPIED,
            occupying_booking=booking,
            time_remaining_minutes=max(0, minutes),
        )

    @property
    def is_occupied(self) -> bool:
        return self.state == StationState.OCCUPIED

    @property
    def time_remaining_display(self) -> Optional[str]:
        if self.time_remaining_minutes is None:
            return None
        return format_minutes(self.time_remaining_minutes)
