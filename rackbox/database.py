"""Relational database setup with SQLAlchemy's asyncio extension."""

import logging
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

from sqlalchemy import Insert, event
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from rackbox.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all RackBox tables."""


# Global engine and session factory references
engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None


_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    """Enable foreign keys and take over transaction control from the driver."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # Stop the driver from emitting its own deferred BEGIN
    dbapi_connection.isolation_level = None


def _begin_immediate(conn) -> None:
    # Take the write lock up front so read-modify-write sequences serialize
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, configuring SQLite connections when needed.

    Args:
        database_url: SQLAlchemy database URL.
        echo: Log every emitted SQL statement.

    Returns:
        The configured AsyncEngine.
    """
    new_engine = create_async_engine(database_url, echo=echo)
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine.sync_engine, "connect", _configure_sqlite_connection)
        event.listen(new_engine.sync_engine, "begin", _begin_immediate)
    return new_engine


def upsert_statement(
    session: AsyncSession,
    model: type[Base],
    values: list[dict[str, Any]],
    index_elements: list[str],
    update_columns: list[str],
) -> Insert:
    """Build an INSERT ... ON CONFLICT DO UPDATE for the session's dialect.

    Rows in ``values`` must not repeat a conflict key.
    """
    dialect = session.get_bind().dialect.name
    insert_fn = _UPSERT_INSERTS.get(dialect)
    if insert_fn is None:
        raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

    stmt = insert_fn(model).values(values)
    return stmt.on_conflict_do_update(
        index_elements=index_elements,
        set_={column: stmt.excluded[column] for column in update_columns},
    )


async def init_db(database_url: str | None = None, create_tables: bool = True) -> AsyncEngine:
    """Initialize the database engine and create tables.

    Args:
        database_url: Optional database URL. Defaults to settings.
        create_tables: Create missing tables after connecting.

    Returns:
        The active engine.
    """
    global engine, async_session

    # Import models so they register with Base.metadata
    import rackbox.models  # noqa: F401

    url = database_url or settings.database_url
    engine = create_engine(url, echo=settings.database_echo)
    if engine.dialect.name == "sqlite" and engine.url.database not in (None, "", ":memory:"):
        Path(engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized: %s", engine.url.render_as_string(hide_password=True))
    return engine


async def close_db() -> None:
    """Dispose of the database engine."""
    global engine, async_session

    if engine is not None:
        await engine.dispose()
        engine = None
        async_session = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the current session factory.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if async_session is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return async_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session."""
    factory = get_session_factory()
    async with factory() as session:
        yield session
