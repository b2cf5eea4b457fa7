# backend/app/db.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.config import CONNECT_TIMEOUT, DB_MAX_RETRIES, MAX_OVERFLOW, POOL_SIZE
from app.errors import BackendUnavailable, DuplicateKey
from app.models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")


def ensure_async_driver(url: str) -> str:
    """
    Ensure the URL uses an async DBAPI for SQLAlchemy asyncio (e.g. +asyncpg).
    If the URL is already async (contains '+'), return as-is.
    If it's a sync 'postgresql://' URL, convert to 'postgresql+asyncpg://'.
    """
    parsed = make_url(url)
    if parsed.drivername and "+" in parsed.drivername:
        return url
    if parsed.get_backend_name() == "postgresql":
        async_driver = f"{parsed.get_backend_name()}+asyncpg"
        return url.replace(parsed.drivername, async_driver, 1)
    if parsed.get_backend_name() == "sqlite":
        return url.replace(parsed.drivername, "sqlite+aiosqlite", 1)
    return url


SYNC_DRIVERS = {"postgresql": "postgresql+psycopg2", "sqlite": "sqlite"}


def ensure_sync_driver(url: str) -> str:
    """Map an app URL to the blocking driver Alembic migrates with."""
    parsed = make_url(url)
    driver = SYNC_DRIVERS.get(parsed.get_backend_name())
    if driver is None:
        return url
    return parsed.set(drivername=driver).render_as_string(hide_password=False)


class Database:
    """
    Pooled access to the relational backend.

    Connections come from the engine's pool and are health-checked on checkout
    (``pool_pre_ping``). ``run`` executes one unit of work in its own
    transaction and retries it when the underlying connection was dropped,
    so a restarted server is picked up by the next attempt.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = POOL_SIZE,
        max_overflow: int = MAX_OVERFLOW,
        connect_timeout: float = CONNECT_TIMEOUT,
        max_retries: int = DB_MAX_RETRIES,
    ):
        self.url = ensure_async_driver(url)
        options = {
            "echo": False,
            "pool_pre_ping": True,
            "connect_args": {"timeout": connect_timeout},
        }
        # sqlite drivers pick their own pool class and reject sizing args
        if make_url(self.url).get_backend_name() != "sqlite":
            options.update(pool_size=pool_size, max_overflow=max_overflow)
        self.engine = create_async_engine(self.url, **options)
        self.sessionmaker = async_sessionmaker(bind=self.engine, class_=AsyncSession, expire_on_commit=False)
        self.max_retries = max(1, max_retries)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncSession]:
        """Check out a session bound to a pooled connection, inside a transaction."""
        async with self.sessionmaker() as session:
            async with session.begin():
                yield session

    async def run(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        for attempt in range(self.max_retries):
            try:
                async with self.acquire() as session:
                    return await operation(session)
            except IntegrityError as exc:
                raise DuplicateKey(f"duplicate key: {exc.orig}") from exc
            except (DBAPIError, OSError) as exc:
                transient = isinstance(exc, OSError) or exc.connection_invalidated
                if transient and attempt < self.max_retries - 1:
                    logger.warning("database connection lost (attempt %d/%d): %s", attempt + 1, self.max_retries, exc)
                    await asyncio.sleep(0.02 * (attempt + 1))
                    continue
                raise BackendUnavailable(f"database error: {exc}") from exc
            except (SQLAlchemyError, asyncio.TimeoutError) as exc:
                raise BackendUnavailable(f"database error: {exc}") from exc
        raise BackendUnavailable("database retries exhausted")

    async def ping(self) -> bool:
        """True when a pooled connection can run a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            logger.warning("database ping failed: %s", exc)
            return False

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
