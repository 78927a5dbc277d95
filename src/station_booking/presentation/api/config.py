"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import List, Optional, Union
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: Union[str, List[str]]) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./station_booking.db"
    database_echo: bool = False
    database_auto_create: bool = True
    db_pool_pre_ping: bool = True
    sqlite_busy_timeout: float = 5.0

    # Application
    service_name: str = "station-booking"
    debug: bool = False
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_dir: Optional[str] = None
    log_max_file_size: int = 10 * 1024 * 1024
    log_backup_count: int = 5
    log_enable_console: bool = True
    log_enable_file: bool = False
    log_request_body: bool = False

    # CORS
    allowed_origins: Union[str, List[str]] = "http://localhost:3000,http://localhost:5173"
    allowed_methods: Union[str, List[str]] = "GET,POST,OPTIONS"
    allowed_headers: Union[str, List[str]] = "*"

    # Cafe
    cafe_timezone: str = "UTC"
    reject_past_bookings: bool = True
    past_booking_grace_seconds: int = 60
    client_refresh_seconds: int = 30

    # Station seed and pricing tiers
    seed_station_specs: Union[str, List[str]] = "PS5,PS5,PC,PC,PC,PC"
    specs_rates: str = "PS5=100"
    default_rate_per_hour: float = 60

    # Mirror sink: auto picks Google Sheets, then a workbook, then nothing
    mirror_backend: str = "auto"
    mirror_workbook_path: Optional[str] = None
    google_sheet_id: Optional[str] = None
    google_creds_json: Optional[str] = None
    google_worksheet_title: str = "Bookings"

    @model_validator(mode='after')
    def convert_lists(self):
        """Convert comma-separated strings to lists."""
        self.allowed_origins = _split_csv(self.allowed_origins)
        self.allowed_methods = _split_csv(self.allowed_methods)
        self.allowed_headers = _split_csv(self.allowed_headers)
        self.seed_station_specs = _split_csv(self.seed_station_specs)
        self.mirror_backend = self.mirror_backend.strip().lower()
        if self.mirror_backend not in {"auto", "none", "workbook", "google_sheets"}:
            raise ValueError(f"Unknown mirror backend: {self.mirror_backend}")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
