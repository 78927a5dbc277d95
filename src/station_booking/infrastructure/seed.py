"""Seed data for the station registry."""

from decimal import Decimal
from typing import List, Mapping, Sequence, Union

from src.station_booking.application.ports.repositories import StationRepository
from src.station_booking.domain.entities.station import Station
from src.station_booking.domain.value_objects.pricing import rate_for_specs
from src.station_booking.infrastructure.logging import get_logger

logger = get_logger(__name__)


def build_seed_stations(
    specs_list: Sequence[str],
    rate_tiers: Mapping[str, Decimal],
    default_rate: Union[Decimal, float, int]
) -> List[Station]:
    """One ``Station N`` per specs entry, priced by its equipment tier."""
    return [
        Station(
            station_id=index,
            name=f"Station {index}",
            specs=specs,
            rate_per_hour=rate_for_specs(specs, rate_tiers, default_rate)
        )
        for index, specs in enumerate(specs_list, start=1)
    ]


async def seed_stations(repository: StationRepository, stations: Sequence[Station]) -> int:
    """Insert the seed stations if the registry is empty. Returns rows added."""
    if await repository.count() > 0:
        return 0
    for station in stations:
        await repository.save(station)
    logger.info("Seeded stations", extra={"station_count": len(stations)})
    return len(stations)
