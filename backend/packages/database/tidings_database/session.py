"""
Database engine and session management.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from .models import Base


class Database:
    """
    Owns the engine and session factory.

    Constructed once at process start and passed to whatever needs sessions.
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Initialize the database.

        Args:
            url: SQLAlchemy async database URL.
            echo: Log emitted SQL.
        """
        self.url = url
        if ":memory:" in url:
            # In-memory databases exist per connection
            self.engine: AsyncEngine = create_async_engine(url, echo=echo, poolclass=StaticPool)
        else:
            self.engine = create_async_engine(url, echo=echo)
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session; uncommitted work is rolled back on error."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
