"""
Database engine and session management with SQLAlchemy async (SQLite)
"""

from typing import Optional
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from core.config import settings
from models import Base
import logging

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite leaves foreign key enforcement off unless asked per connection"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: Optional[str] = None, echo: bool = False) -> AsyncEngine:
    """Create an async engine, enabling foreign keys on SQLite connections"""
    url = database_url or settings.DATABASE_URL
    engine = create_async_engine(
        url,
        echo=echo,
        poolclass=NullPool,  # One writer, one run; no pooling needed
        future=True
    )
    
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create session factory bound to the given engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def init_schema(engine: AsyncEngine):
    """Create all tables (idempotent)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Schema ready: {', '.join(sorted(Base.metadata.tables))}")

