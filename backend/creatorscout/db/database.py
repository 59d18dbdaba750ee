import logging
import os
from typing import Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class Database:
    """Owns the async engine and session factory for one database URL.

    Open it with ``await db.init()`` (or ``async with Database(url) as db``)
    and release it with ``await db.close()``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = make_url(url)
        self.engine = create_async_engine(url, echo=echo)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_pragmas)
        self._session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def _ensure_sqlite_dir(self) -> None:
        path: Optional[str] = self.url.database
        if not path or path == ":memory:":
            return
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

    async def init(self) -> None:
        # Register every table on Base.metadata before create_all
        from creatorscout.models import analysis, campaign, creator, youtube  # noqa: F401

        if self.is_sqlite:
            self._ensure_sqlite_dir()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database ready at %s", self.url.render_as_string(hide_password=True))

    def session(self) -> AsyncSession:
        return self._session_factory()

    async def close(self) -> None:
        await self.engine.dispose()

    async def __aenter__(self) -> "Database":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
