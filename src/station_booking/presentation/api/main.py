"""FastAPI main application module."""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ...domain.exceptions import (
    BookingConflictError,
    InvalidBookingStateError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError
)
from ...infrastructure.logging import get_logger, setup_logging_from_settings
from ...infrastructure.services import ServiceFactory
from .config import Settings, get_settings
from .middleware import RequestLoggingMiddleware
from .routes import bookings, dashboard, health, stations

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    setup_logging_from_settings(app.state.settings)
    logger.info("Starting Station Booking API")
    await app.state.services.initialize()

    yield

    logger.info("Shutting down Station Booking API")
    await app.state.services.shutdown()


def _error_response(status_code: int, detail: str, error_type: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "type": error_type})


def _describe_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies and query strings are client errors like any other."""
        logger.warning(f"Request validation error on {request.url}: {exc.errors()}")
        return _error_response(400, _describe_validation_errors(exc), "validation_error")

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        """Handle validation errors from business logic."""
        logger.warning(f"Validation error on {request.url}: {str(exc)}")
        return _error_response(400, str(exc), exc.error_type)

    @app.exception_handler(BookingConflictError)
    async def conflict_error_handler(request: Request, exc: BookingConflictError):
        """Handle overlapping booking attempts."""
        logger.info(f"Booking conflict on {request.url}: {str(exc)}")
        return _error_response(400, str(exc), exc.error_type)

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError):
        return _error_response(404, str(exc), exc.error_type)

    @app.exception_handler(InvalidBookingStateError)
    async def invalid_state_error_handler(request: Request, exc: InvalidBookingStateError):
        logger.warning(f"Invalid state transition on {request.url}: {str(exc)}")
        return _error_response(409, str(exc), exc.error_type)

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_error_handler(request: Request, exc: StoreUnavailableError):
        """Handle an unreachable booking store."""
        logger.error(f"Store unavailable on {request.url}: {str(exc)}")
        return _error_response(503, "Booking store unavailable", exc.error_type)


def create_app(
    settings: Optional[Settings] = None,
    service_factory: Optional[ServiceFactory] = None
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Station Booking System",
        description="API for booking gaming stations by the hour",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.services = service_factory or ServiceFactory(settings)

    add_exception_handlers(app)

    app.add_middleware(
        RequestLoggingMiddleware,
        log_request_body=settings.log_request_body
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        stations.router,
        prefix=f"{settings.api_prefix}/stations",
        tags=["stations"]
    )
    app.include_router(
        bookings.router,
        prefix=f"{settings.api_prefix}/bookings",
        tags=["bookings"]
    )
    app.include_router(
        dashboard.router,
        prefix=f"{settings.api_prefix}/dashboard",
        tags=["dashboard"]
    )

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "src.station_booking.presentation.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
