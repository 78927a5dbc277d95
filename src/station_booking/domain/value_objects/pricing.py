"""Pricing rules for station bookings."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Mapping, Union

from .time_range import TWO_PLACES

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Coerce a number to a two-place decimal."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_total_price(duration_hours: Decimal, rate_per_hour: Number) -> Decimal:
    """Price for a booking: duration x hourly rate, rounded to cents."""
    rate = Decimal(str(rate_per_hour))
    return (duration_hours * rate).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def parse_rate_tiers(raw: str) -> Dict[str, Decimal]:
    """Parse ``"PS5=100,VR=120"`` into a specs -> rate mapping."""
    tiers: Dict[str, Decimal] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ValueError(f"Invalid rate tier entry: {item!r}")
        specs, rate = item.split("=", 1)
        tiers[specs.strip().upper()] = to_money(rate.strip())
    return tiers


def rate_for_specs(specs: str, tiers: Mapping[str, Decimal], default_rate: Number) -> Decimal:
    """Pick the hourly rate for a station from its equipment class."""
    key = (specs or "").strip().upper()
    if key in tiers:
        return to_money(tiers[key])
    return to_money(default_rate)
