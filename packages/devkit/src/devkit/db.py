from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import MetaData, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine as _create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PSYCOPG_SCHEME = "postgresql+psycopg"


class Base(DeclarativeBase):
    """Declarative base for every ORM model of the service."""


def normalize_postgres_dsn(dsn: str) -> str:
    """Point bare ``postgres://`` and ``postgresql://`` URLs at the psycopg 3 driver."""
    scheme, sep, rest = dsn.partition("://")
    if sep and scheme in ("postgres", "postgresql"):
        return f"{_PSYCOPG_SCHEME}://{rest}"
    return dsn


def postgres_connect_args(
    dsn: str,
    *,
    connect_timeout_seconds: float | None = None,
    statement_timeout_ms: int | None = None,
) -> dict[str, Any]:
    if not dsn.startswith(f"{_PSYCOPG_SCHEME}://"):
        return {}
    args: dict[str, Any] = {}
    if connect_timeout_seconds:
        # libpq takes whole seconds
        args["connect_timeout"] = max(1, int(connect_timeout_seconds))
    if statement_timeout_ms:
        args["options"] = f"-c statement_timeout={int(statement_timeout_ms)}"
    return args


def create_async_engine(
    dsn: str,
    *,
    connect_timeout_seconds: float | None = None,
    statement_timeout_ms: int | None = None,
) -> AsyncEngine:
    url = normalize_postgres_dsn(dsn)
    return _create_async_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=1800,
        connect_args=postgres_connect_args(
            url,
            connect_timeout_seconds=connect_timeout_seconds,
            statement_timeout_ms=statement_timeout_ms,
        ),
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


def is_transient_db_error(exc: Exception) -> bool:
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError):
        return bool(getattr(exc, "connection_invalidated", False))
    return False


async def create_all_tables(engine: AsyncEngine, metadata: MetaData) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


class AsyncDatabaseManager:
    """Lazily connected engine plus session helpers.

    ``run_with_session`` drops the pool and retries after transient failures
    (connection loss, server restarts). Anything else propagates on the first
    attempt. Callers that enforce their own deadline should pass
    ``max_retries=1`` so none of it is spent in backoff sleeps.
    """

    def __init__(
        self,
        dsn: str,
        *,
        max_retries: int = 3,
        base_delay_seconds: float = 0.2,
        connect_timeout_seconds: float | None = None,
        statement_timeout_ms: int | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._dsn = normalize_postgres_dsn(dsn)
        self._max_retries = max_retries
        self._base_delay_seconds = base_delay_seconds
        self._connect_timeout_seconds = connect_timeout_seconds
        self._statement_timeout_ms = statement_timeout_ms
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("database manager is not connected")
        return self._engine

    async def connect(self) -> None:
        if self._engine is None:
            self._engine = create_async_engine(
                self._dsn,
                connect_timeout_seconds=self._connect_timeout_seconds,
                statement_timeout_ms=self._statement_timeout_ms,
            )
            self._session_factory = create_session_factory(self._engine)
        await self.ping()

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    @asynccontextmanager
    async def session(self, *, read_only: bool = False) -> AsyncIterator[AsyncSession]:
        if self._session_factory is None:
            await self.connect()
        if self._session_factory is None:
            raise RuntimeError("database manager has no session factory after connect")
        session = self._session_factory()
        try:
            yield session
            if read_only:
                await session.rollback()
            else:
                await session.commit()
        except BaseException:
            # cancellation included, a timed-out caller must not leave the transaction open
            await session.rollback()
            raise
        finally:
            await session.close()

    async def run_with_session(
        self,
        fn: Callable[[AsyncSession], Awaitable[T]],
        *,
        read_only: bool = False,
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                async with self.session(read_only=read_only) as session:
                    return await fn(session)
            except Exception as exc:
                if attempt >= self._max_retries or not is_transient_db_error(exc):
                    raise
                logger.warning(
                    "db_transient_error_retry",
                    extra={"component": "devkit.db", "attempt": attempt, "max_retries": self._max_retries},
                    exc_info=True,
                )
                await self.disconnect()
                await asyncio.sleep(self._base_delay_seconds * (2 ** (attempt - 1)))
