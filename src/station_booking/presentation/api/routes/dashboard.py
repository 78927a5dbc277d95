"""Dashboard endpoint polled by the booking screen."""

from fastapi import APIRouter, Depends

from ..dependencies import get_service_factory
from ..schemas.booking_schemas import BookingResponse
from ..schemas.station_schemas import DashboardResponse, StationStatusResponse
from ....infrastructure.services import ServiceFactory

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def dashboard(factory: ServiceFactory = Depends(get_service_factory)) -> DashboardResponse:
    """Live station statuses and booking history in one round trip."""
    async with factory.get_services() as services:
        now = services.stations.now()
        statuses = await services.stations.live_statuses(now)
        views = await services.bookings.list_with_station_names()

    return DashboardResponse(
        generated_at=now,
        refresh_after_seconds=factory.settings.client_refresh_seconds,
        stations=[StationStatusResponse.from_live_status(live) for live in statuses],
        bookings=[BookingResponse.from_view(view) for view in views]
    )
