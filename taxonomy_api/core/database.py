"""
Database configuration with async sessions and retry on connection failures
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from taxonomy_api.core.config import settings
from taxonomy_api.core.logging import log


class DatabaseConfig:
    """Database configuration with environment-based settings"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.pool_size = settings.db_pool_size
        self.max_overflow = settings.db_max_overflow
        self.pool_pre_ping = settings.db_pool_pre_ping
        self.echo = settings.db_echo
        self.pool_recycle = 3600  # Recycle connections after 1 hour

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def async_url(self) -> str:
        """Convert sync URL to async URL"""
        return str(self.database_url).replace("postgresql://", "postgresql+asyncpg://")

    @property
    def async_engine_kwargs(self) -> dict:
        """Get async engine configuration"""
        kwargs = {"echo": self.echo}
        if self.is_sqlite:
            return kwargs
        kwargs.update(
            {
                "pool_pre_ping": self.pool_pre_ping,
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_recycle": self.pool_recycle,
                "connect_args": {"server_settings": {"application_name": settings.PROJECT_NAME, "jit": "off"}},
            }
        )
        return kwargs


def create_engine_for(database_url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine for the given URL (defaults to settings)"""
    config = DatabaseConfig(database_url)
    engine = create_async_engine(config.async_url, **config.async_engine_kwargs)
    if config.is_sqlite:
        event.listen(engine.sync_engine, "connect", set_sqlite_pragma)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign keys on SQLite connections"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Retry decorator for connection-level failures only
db_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
    retry=retry_if_exception_type((OperationalError, DisconnectionError)),
)


class DatabaseSessionManager:
    """Manages database session lifecycle"""

    def __init__(self, database_url: Optional[str] = None):
        self._database_url = database_url
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine_for(self._database_url)
            self._sessionmaker = create_session_factory(self._engine)
        return self._engine

    @db_retry
    async def init(self):
        """Create tables and verify the connection"""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
            await conn.execute(text("SELECT 1"))
        log.info("Database connection established successfully")

    async def close(self):
        """Close database connection"""
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        log.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session; repositories own commit/rollback"""
        if self._sessionmaker is None:
            self._sessionmaker = create_session_factory(self.engine)
        async with self._sessionmaker() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                log.error(f"Database session error: {e}")
                raise


# Global session manager instance
db_manager = DatabaseSessionManager()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Async session dependency"""
    async with db_manager.session() as session:
        yield session


async def init_db():
    """Initialize database tables (use migrations in production)"""
    await db_manager.init()
    log.info("Database tables created")


__all__ = [
    "DatabaseConfig",
    "DatabaseSessionManager",
    "create_engine_for",
    "create_session_factory",
    "db_manager",
    "db_retry",
    "get_async_session",
    "init_db",
]
