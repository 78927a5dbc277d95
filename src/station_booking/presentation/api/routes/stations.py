"""Station endpoints: registry listing, window availability and live status."""

from datetime import date as Date, time as Time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_service_factory
from ..schemas.station_schemas import StationResponse, StationStatusResponse
from ....domain.exceptions import ValidationError
from ....domain.value_objects.time_range import TimeRange
from ....infrastructure.services import ServiceFactory

router = APIRouter()


@router.get("", response_model=List[StationResponse], response_model_exclude_none=True)
async def list_stations(
    date: Optional[Date] = Query(None, description="Date in YYYY-MM-DD format"),
    start_time: Optional[Time] = Query(None, description="Window start, HH:MM"),
    end_time: Optional[Time] = Query(None, description="Window end, HH:MM"),
    factory: ServiceFactory = Depends(get_service_factory)
) -> List[StationResponse]:
    """List stations, annotated with availability when a full window is given."""
    window_parts = [date, start_time, end_time]
    if any(part is not None for part in window_parts) and not all(part is not None for part in window_parts):
        raise ValidationError("date, start_time and end_time must be given together")

    async with factory.get_station_service() as station_service:
        if date is None:
            stations = await station_service.list_stations()
            return [StationResponse.from_station(station) for station in stations]

        window = TimeRange(booking_date=date, start_time=start_time, end_time=end_time)
        annotated = await station_service.list_stations_for_window(window)

    return [StationResponse.from_station(station, available) for station, available in annotated]


@router.get("/status", response_model=List[StationStatusResponse])
async def station_statuses(
    factory: ServiceFactory = Depends(get_service_factory)
) -> List[StationStatusResponse]:
    """Live occupancy of every station right now."""
    async with factory.get_station_service() as station_service:
        statuses = await station_service.live_statuses()
    return [StationStatusResponse.from_live_status(live) for live in statuses]
