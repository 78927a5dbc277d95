"""FastAPI dependencies resolving the injected service factory."""

from fastapi import Request

from ...infrastructure.services import ServiceFactory


def get_service_factory(request: Request) -> ServiceFactory:
    """Service factory attached to the application at creation time."""
    factory = getattr(request.app.state, "services", None)
    if factory is None:
        raise RuntimeError("Service factory not configured")
    return factory
