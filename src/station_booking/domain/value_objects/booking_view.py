"""Read-side projection of a booking joined with its station name."""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities.booking import Booking


@dataclass(frozen=True)
class BookingView:
    """Booking plus the display name of the station it reserves."""

    booking: "Booking"
    station_name: Optional[str]
