"""Station entity for the bookable computers of the cafe."""

from decimal import Decimal
from typing import Union

from ..value_objects.pricing import to_money


class Station:
    """A bookable seat with an hourly rate. Immutable once seeded."""

    def __init__(
        self,
        station_id: int,
        name: str,
        rate_per_hour: Union[Decimal, int, float, str],
        specs: str = ""
    ):
        if not name or not name.strip():
            raise ValueError("Station name cannot be empty")
        rate = to_money(rate_per_hour)
        if rate < 0:
            raise ValueError("Rate per hour cannot be negative")

        self._id = station_id
        self._name = name.strip()
        self._specs = (specs or "").strip()
        self._rate_per_hour = rate

    @property
    def id(self) -> int:
        """Get station ID."""
        return self._id

    @property
    def name(self) -> str:
        """Get display name."""
        return self._name

    @property
    def specs(self) -> str:
        """Get equipment descriptor."""
        return self._specs

    @property
    def rate_per_hour(self) -> Decimal:
        """Get hourly rate."""
        return self._rate_per_hour

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Station):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Station({self._id}, {self._name}, {self._specs or '-'})"
