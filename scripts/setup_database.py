"""Script to initialize database tables and seed the station registry."""

import asyncio

from src.station_booking.infrastructure.services import ServiceFactory
from src.station_booking.presentation.api.config import Settings


async def setup_database():
    """Create tables and seed stations from DATABASE_URL and SEED_STATION_SPECS."""
    settings = Settings(database_auto_create=True, mirror_backend="none")
    factory = ServiceFactory(settings)

    try:
        await factory.initialize()

        async with factory.get_station_service() as station_service:
            stations = await station_service.list_stations()

        print(f"✅ Database ready with {len(stations)} stations:")
        for station in stations:
            print(f"   {station.id}: {station.name} [{station.specs}] {station.rate_per_hour}/h")

    except Exception as e:
        print(f"❌ Error setting up database: {e}")
        raise
    finally:
        await factory.shutdown()


if __name__ == "__main__":
    asyncio.run(setup_database())
