"""Database connection management."""

import asyncio
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.station_booking.domain.exceptions import StoreUnavailableError
from src.station_booking.infrastructure.logging import get_logger

logger = get_logger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Pick async drivers for plain postgresql:// and sqlite:// URLs."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the database write lock when it starts.

    The driver's own deferred BEGIN is switched off so that two processes
    sharing the file queue on the lock instead of both reading a free
    slot and both inserting.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseManager:
    """Database connection manager.

    SQLite has no row locks. Within one process, sessions against it are
    serialized by an asyncio lock held until commit. Across processes the
    file itself is the lock: transactions open with BEGIN IMMEDIATE and
    wait up to ``sqlite_busy_timeout`` seconds for a competing writer,
    after which the store reports itself unavailable.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_pre_ping: bool = True,
        sqlite_busy_timeout: float = 5.0
    ):
        """Initialize database manager."""
        self._database_url = normalize_database_url(database_url)
        self._echo = echo
        self._pool_pre_ping = pool_pre_ping
        self._sqlite_busy_timeout = sqlite_busy_timeout
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker | None = None
        self._serialize_sessions = self._database_url.startswith("sqlite")
        self._sqlite_lock: asyncio.Lock | None = None

    @property
    def database_url(self) -> str:
        return self._database_url

    async def connect(self) -> None:
        """Connect to database."""
        engine_options = {}
        if self._serialize_sessions:
            engine_options["connect_args"] = {"timeout": self._sqlite_busy_timeout}

        self._engine = create_async_engine(
            self._database_url,
            echo=self._echo,
            pool_pre_ping=self._pool_pre_ping,
            **engine_options,
        )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if self._serialize_sessions:
            _use_immediate_transactions(self._engine)
            self._sqlite_lock = asyncio.Lock()

    async def disconnect(self) -> None:
        """Disconnect from database."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def create_all(self, metadata) -> None:
        """Create all tables for the given metadata."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except (OperationalError, InterfaceError, OSError) as exc:
            raise StoreUnavailableError(f"Database unavailable: {exc}") from exc

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a transactional session; commits on success, rolls back on error."""
        if not self._session_factory:
            raise RuntimeError("Database not connected. Call connect() first.")

        guard = self._sqlite_lock if self._sqlite_lock is not None else nullcontext()
        async with guard:
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except (OperationalError, InterfaceError, OSError) as exc:
                    logger.error("Database unavailable", extra={"error": str(exc)})
                    raise StoreUnavailableError("Booking store is unavailable") from exc
                except Exception:
                    await session.rollback()
                    raise

    @property
    def engine(self) -> AsyncEngine:
        """Get database engine."""
        if not self._engine:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine
