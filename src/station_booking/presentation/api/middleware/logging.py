"""Access logging for the booking API."""

import logging
import time
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ....infrastructure.logging import correlation_scope, get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# The booking screen polls these; logging them would bury real traffic
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})


def _status_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request, tagged with a correlation ID echoed back to the client."""

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        max_body_size: int = 1024,
        quiet_paths: Optional[Iterable[str]] = None
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.max_body_size = max_body_size
        self.quiet_paths = frozenset(quiet_paths) if quiet_paths is not None else QUIET_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.quiet_paths:
            return await call_next(request)

        with correlation_scope(request.headers.get(CORRELATION_HEADER)) as correlation_id:
            started = time.perf_counter()
            body = await self._body_for_log(request)
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    f"{request.method} {request.url.path} raised",
                    extra={"http": self._http_fields(request, started), "request_body": body}
                )
                raise

            response.headers[CORRELATION_HEADER] = correlation_id
            fields = self._http_fields(request, started)
            fields["status"] = response.status_code
            logger.log(
                _status_level(response.status_code),
                f"{request.method} {request.url.path} -> {response.status_code} ({fields['duration_ms']}ms)",
                extra={"http": fields, "request_body": body}
            )
            return response

    async def _body_for_log(self, request: Request) -> Optional[str]:
        if not self.log_request_body or request.method not in ("POST", "PUT", "PATCH"):
            return None
        raw = await request.body()
        if len(raw) > self.max_body_size:
            return f"<{len(raw)} bytes>"
        return raw.decode("utf-8", errors="replace")

    @staticmethod
    def _http_fields(request: Request, started: float) -> dict:
        return {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.query_params) or None,
            "client": request.client.host if request.client else None,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        }
