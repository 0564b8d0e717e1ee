"""Async engine, session factory and the declarative base."""
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.engine.url import make_url
from retreat_store.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

is_sqlite = make_url(settings.database_url).drivername.startswith("sqlite")

# Hosted Postgres instances require SSL
connect_args = {}
if not is_sqlite and settings.environment == "production":
    connect_args["ssl"] = "require"

engine_kwargs = {
    "echo": settings.environment == "development",
    "future": True,
    "connect_args": connect_args,
    "pool_pre_ping": True,
}

# SQLite uses a static file pool; sizing only applies to server databases
if not is_sqlite:
    engine_kwargs.update(
        pool_recycle=3600,
        pool_size=max(1, settings.db_pool_size),
        max_overflow=max(0, settings.db_max_overflow),
    )

try:
    engine = create_async_engine(settings.database_url, **engine_kwargs)
except (SQLAlchemyError, ImportError) as e:
    logger.error(f"Failed to create {'SQLite' if is_sqlite else 'Postgres'} engine: {e}")
    raise

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """Yield one session per request.

    Services commit their own units of work; anything still pending when the
    request ends is discarded.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()
            await session.close()
