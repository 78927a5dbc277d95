"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ..dependencies import get_service_factory
from ....infrastructure.services import ServiceFactory

router = APIRouter()


@router.get("/health")
async def health_check(factory: ServiceFactory = Depends(get_service_factory)) -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": factory.settings.service_name,
        "mirror": factory.notifier.sink.name
    }


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Station Booking API", "version": "0.1.0"}
