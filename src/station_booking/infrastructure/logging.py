"""Structured logging for the station booking service.

Every record carries the correlation ID of the HTTP request that produced
it, so a booking, its conflict check and its mirror delivery can be
followed across the request task and the background mirror task.
"""

import json
import logging
import logging.handlers
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

DEFAULT_SERVICE_NAME = "station-booking"

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_ATTRIBUTES = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime", "correlation_id", "taskName"
}

_QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "aiosqlite",
    "asyncio",
    "uvicorn.access",
    "urllib3",
    "google.auth",
    "gspread",
)


class CorrelationIDFilter(logging.Filter):
    """Stamp records with the correlation ID of the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = _correlation_id.get() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields land under ``extra``."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "-"),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        extra = {key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRIBUTES}
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str, ensure_ascii=False)


TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(correlation_id)s] %(name)s: %(message)s"


def _build_handlers(
    service_name: str,
    log_format: str,
    log_dir: Optional[str],
    enable_console: bool,
    enable_file: bool,
    max_file_size: int,
    backup_count: int
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        if log_format == "text":
            console.setFormatter(logging.Formatter(TEXT_FORMAT))
        else:
            console.setFormatter(JSONFormatter(service_name))
        handlers.append(console)

    if enable_file:
        directory = Path(log_dir or "logs")
        directory.mkdir(parents=True, exist_ok=True)
        for suffix, level in (("", logging.NOTSET), ("-errors", logging.ERROR)):
            handler = logging.handlers.RotatingFileHandler(
                filename=directory / f"{service_name}{suffix}.log",
                maxBytes=max_file_size,
                backupCount=backup_count,
                encoding="utf-8"
            )
            handler.setLevel(level)
            handler.setFormatter(JSONFormatter(service_name))
            handlers.append(handler)

    return handlers


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    log_format: str = "json",
    log_dir: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> List[logging.Handler]:
    """Replace the root handlers with console and/or rotating file output.

    File output writes two files: everything, and ERROR and above.
    Returns the installed handlers.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level.upper())

    handlers = _build_handlers(
        service_name, log_format, log_dir, enable_console, enable_file, max_file_size, backup_count
    )
    correlation_filter = CorrelationIDFilter()
    for handler in handlers:
        handler.addFilter(correlation_filter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handlers


def setup_logging_from_settings(settings) -> List[logging.Handler]:
    """Setup logging configuration from application settings."""
    return configure_logging(
        level=settings.log_level,
        service_name=settings.service_name,
        log_format=settings.log_format,
        log_dir=settings.log_dir,
        enable_console=settings.log_enable_console,
        enable_file=settings.log_enable_file,
        max_file_size=settings.log_max_file_size,
        backup_count=settings.log_backup_count
    )


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of a block, then restore the previous one.

    Tasks created inside the block inherit the ID, which is how background
    mirror writes stay linked to the request that queued them.
    """
    value = correlation_id or generate_correlation_id()
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_database_operation(logger: logging.Logger, operation: str, table: str, **extra) -> None:
    """DEBUG-level trace of a repository statement."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Database {operation}: {table}", extra={"db_operation": operation, "db_table": table, **extra})


def log_business_rule_violation(logger: logging.Logger, rule: str, details: str, **extra) -> None:
    """A request refused by a booking rule, e.g. an overlap or a repeated completion."""
    logger.warning(
        f"Business rule violation: {rule} - {details}",
        extra={"business_rule": rule, "violation_details": details, **extra}
    )


def log_mirror_failure(logger: logging.Logger, sink: str, action: str, booking_code: str, error: BaseException) -> None:
    """A mirror write that was dropped; the booking itself is unaffected."""
    logger.warning(
        f"Mirror {action} failed on {sink} for {booking_code}: {error}",
        extra={
            "mirror_sink": sink,
            "mirror_action": action,
            "booking_code": booking_code,
            "error_type": type(error).__name__
        }
    )
