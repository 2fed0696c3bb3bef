"""
Async SQLAlchemy engine and session factory.

Uses ``asyncpg`` as the PostgreSQL driver for non-blocking I/O.

Every dispatch action (assign, advance, verification, settle) is one short
unit of work on its own session, so a connection is held only for a few
round trips.  The default pool of 10 (+5 overflow) covers a dispatch desk
plus customers polling their tracking links; a settle keeps its
connection for the whole time it holds the driver's Redis lock.  Tune
with ``DB_POOL_SIZE`` / ``DB_MAX_OVERFLOW``.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dispatch.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

# Services read rows back after commit to build their responses
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the customer, driver, trip and audit tables."""
