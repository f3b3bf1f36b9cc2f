from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from auctionlive.core.config import settings


class Base(DeclarativeBase):
    """All ORM models base class"""

    pass


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine, with pool tuning only for PostgreSQL."""
    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(url, echo=False, future=True)

        # SQLite leaves foreign keys (and their ON DELETE actions) off by default
        @event.listens_for(sqlite_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    if not url.startswith("postgresql"):
        return create_async_engine(url, echo=False, future=True)

    return create_async_engine(
        url,
        echo=False,  # Disable SQL logging for performance
        future=True,
        pool_use_lifo=True,  # Use LIFO to reuse recent connections
        pool_size=20,
        max_overflow=30,
        pool_recycle=120,
        pool_timeout=10,  # Fail fast if pool exhausted
        pool_pre_ping=True,
        connect_args={
            "server_settings": {
                "timezone": "UTC",  # Force PostgreSQL to use UTC timezone
                "application_name": "auctionlive",
            },
            "command_timeout": 30,
            "timeout": 15,  # Connection establishment timeout
        },
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL)

# Create non-blocking session factory
AsyncSessionLocal = build_session_factory(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database, create all tables"""
    async with (bind or engine).begin() as conn:
        # Import all models to ensure they are registered
        from auctionlive.models import Bid, Item, User, UserItem  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connection"""
    await engine.dispose()
