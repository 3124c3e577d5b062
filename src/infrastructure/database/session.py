"""Async database handle: connection pool, schema bootstrap and sessions.

This module implements the storage connector of the application. A single
``Database`` instance is constructed by the application factory and handed
to request handlers through FastAPI dependencies. The handle owns the
async engine, the engine owns the connection pool, and the pool owns the
physical connections.

Core functionality:
- **Connection pooling**: Bounded pool; callers queue when it is exhausted
- **Retrying startup**: ``connect`` retries with a fixed delay and raises
  ``StartupError`` once every attempt has failed
- **Schema bootstrap**: Idempotent create-if-absent of the ``users`` table
- **Error translation**: Driver failures surface as ``StorageError``
- **Health checks**: ``ping`` for the liveness endpoint
- **Query monitoring**: Optional slow query logging through cursor events
"""

import asyncio
import time
from collections.abc import AsyncGenerator, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any
from weakref import WeakKeyDictionary

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import Connection, RowMapping, make_url
from sqlalchemy.engine.interfaces import DBAPICursor, ExecutionContext
from sqlalchemy.exc import ArgumentError, InvalidRequestError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql import Executable

from src.core.config import DatabaseConfig, LogConfig, Settings
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.context import RequestContext
from src.core.error_context import sanitize_sql_params
from src.core.exceptions import StartupError, StorageError
from src.core.logging import log_info
from src.infrastructure.constants import (
    COMMAND_TIMEOUT_SECONDS,
    MAX_LOGGED_QUERY_LENGTH,
    POOL_RECYCLE_SECONDS,
)
from src.infrastructure.database.base import Base

STORAGE_FAILURE_MESSAGE = "Database operation failed"

# Errors raised while talking to the database. Connection failures from the
# driver (refused, unreachable, timeouts) surface as OSError subclasses.
DATABASE_ERRORS = (SQLAlchemyError, OSError)

# Store query start times for execution contexts
_query_start_times: WeakKeyDictionary[ExecutionContext, float] = WeakKeyDictionary()


def _before_cursor_execute(
    _conn: Connection,
    _cursor: DBAPICursor,
    _statement: str,
    _parameters: dict[str, Any] | list[Any] | tuple[Any, ...] | None,
    context: ExecutionContext,
    _executemany: bool,
) -> None:
    """Track query start time for performance monitoring."""
    _query_start_times[context] = time.perf_counter()


def _make_after_cursor_execute(threshold_ms: int) -> Callable[..., None]:
    """Build the listener logging queries slower than ``threshold_ms``."""

    def _after_cursor_execute(
        _conn: Connection,
        cursor: DBAPICursor,
        statement: str,
        parameters: dict[str, Any] | list[Any] | tuple[Any, ...] | None,
        context: ExecutionContext,
        executemany: bool,
    ) -> None:
        start_time = _query_start_times.pop(context, None)
        if start_time is None:
            return

        duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
        if duration_ms < threshold_ms:
            return

        rows_affected = getattr(cursor, "rowcount", -1)
        clean_statement = " ".join(statement.split())[:MAX_LOGGED_QUERY_LENGTH]

        logger.warning(
            "Slow query detected: {}... Duration: {:.2f}ms",
            clean_statement[:100],
            duration_ms,
            query=clean_statement,
            duration_ms=round(duration_ms, 2),
            rows_affected=-1 if rows_affected is None else rows_affected,
            parameters=sanitize_sql_params(parameters),
            correlation_id=RequestContext.get_correlation_id(),
            executemany=executemany,
            threshold_ms=threshold_ms,
        )

    return _after_cursor_execute


class Database:
    """Handle on the backing relational store.

    Args:
        database_url: SQLAlchemy URL using an async driver.
        config: Pool and retry configuration.
        log_config: Logging configuration (slow query logging).

    Example:
        database = Database.from_settings(get_settings())
        await database.connect()
        rows = await database.execute("SELECT COUNT(*) AS n FROM users")
    """

    def __init__(
        self,
        database_url: str,
        config: DatabaseConfig | None = None,
        log_config: LogConfig | None = None,
    ) -> None:
        self.database_url = database_url
        self.config = config or DatabaseConfig()
        self.log_config = log_config or LogConfig()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create a handle from application settings.

        Args:
            settings: Application settings.

        Returns:
            Database: A handle that has not connected yet.
        """
        return cls(
            settings.database_url,
            config=settings.database_config,
            log_config=settings.log_config,
        )

    @property
    def backend(self) -> str:
        """Database backend name, e.g. ``postgresql`` or ``sqlite``."""
        return make_url(self.database_url).get_backend_name()

    def _create_engine(self) -> AsyncEngine:
        """Create the async engine with connection pooling.

        Returns:
            AsyncEngine: Configured async engine instance.
        """
        options: dict[str, Any] = {
            "pool_pre_ping": self.config.pool_pre_ping,
            "echo": self.config.echo,
        }
        # SQLite manages its own pooling; sizing options do not apply
        if self.backend != "sqlite":
            options.update(
                pool_size=self.config.pool_size,
                max_overflow=self.config.max_overflow,
                pool_timeout=self.config.pool_timeout,
                pool_recycle=POOL_RECYCLE_SECONDS,
            )
        if self.backend == "postgresql":
            options["connect_args"] = {
                "server_settings": {"jit": "off"},
                "command_timeout": COMMAND_TIMEOUT_SECONDS,
            }

        engine = create_async_engine(self.database_url, **options)

        if self.log_config.enable_sql_logging:
            try:
                event.listen(
                    engine.sync_engine, "before_cursor_execute", _before_cursor_execute
                )
                event.listen(
                    engine.sync_engine,
                    "after_cursor_execute",
                    _make_after_cursor_execute(self.log_config.slow_query_threshold_ms),
                )
                logger.info("Registered query performance event listeners")
            except (InvalidRequestError, ArgumentError, AttributeError, TypeError) as e:
                logger.warning(
                    "Failed to register query performance event listeners: {}: {}",
                    type(e).__name__,
                    str(e),
                )

        logger.info(
            "Created database engine - backend: {}, pool_size: {}, max_overflow: {}",
            self.backend,
            self.config.pool_size,
            self.config.max_overflow,
        )
        return engine

    @property
    def engine(self) -> AsyncEngine:
        """The async engine, created on first use."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the async session factory.

        Returns:
            async_sessionmaker[AsyncSession]: The session factory.
        """
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    async def bootstrap_schema(self) -> None:
        """Create the application tables if they do not exist.

        Never drops or alters existing tables.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    async def connect(
        self, max_retries: int | None = None, retry_delay: float | None = None
    ) -> None:
        """Connect to the database and bootstrap the schema, retrying on failure.

        Args:
            max_retries: Number of attempts. Defaults to the configured value.
            retry_delay: Seconds between attempts. Defaults to the configured value.

        Raises:
            ValueError: If fewer than one attempt is requested.
            StartupError: If every attempt failed.
        """
        attempts = (
            self.config.connect_max_retries if max_retries is None else max_retries
        )
        if attempts < 1:
            msg = f"max_retries must be at least 1, got {attempts}"
            raise ValueError(msg)
        delay = (
            self.config.connect_retry_delay if retry_delay is None else retry_delay
        )
        last_error: BaseException | None = None

        for attempt in range(1, attempts + 1):
            try:
                await self.bootstrap_schema()
            except DATABASE_ERRORS as exc:
                last_error = exc
                retries_left = attempts - attempt
                logger.warning(
                    "Database initialization failed ({} retries left): {}",
                    retries_left,
                    type(exc).__name__,
                    event="DB_INIT_FAILED",
                    attempt=attempt,
                    retries_left=retries_left,
                )
                await self.close()
                if retries_left:
                    await asyncio.sleep(delay)
            else:
                log_info(
                    200,
                    "Database initialized/connected",
                    event="DB_INIT",
                    attempt=attempt,
                )
                return

        msg = f"Database unreachable after {attempts} attempts"
        raise StartupError(
            msg,
            context={"event": "DB_INIT_EXHAUSTED", "attempts": attempts},
            cause=last_error,
        )

    async def execute(
        self,
        statement: Executable | str,
        params: Mapping[str, Any] | None = None,
    ) -> list[RowMapping] | int:
        """Execute one statement in its own transaction.

        Args:
            statement: A SQLAlchemy executable or a textual SQL statement.
            params: Bound parameters for the statement.

        Returns:
            list[RowMapping] | int: The rows for statements returning rows,
                otherwise the affected-row count.

        Raises:
            StorageError: If the database cannot be reached or the statement fails.
        """
        stmt = text(statement) if isinstance(statement, str) else statement
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt, dict(params) if params else None)
                if result.returns_rows:
                    return list(result.mappings().all())
                return result.rowcount
        except DATABASE_ERRORS as exc:
            raise StorageError(STORAGE_FAILURE_MESSAGE, cause=exc) from exc

    async def ping(self) -> bool:
        """Run a trivial round-trip query.

        Returns:
            bool: True if the database answered, False otherwise.
        """
        try:
            await self.execute("SELECT 1")
        except StorageError as exc:
            logger.debug("Database ping failed: {}", type(exc.cause).__name__)
            return False
        return True

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Get an async session, committed on success and rolled back on error.

        Yields:
            AsyncSession: Database session for performing operations.

        Raises:
            StorageError: If the database fails while the session is in use.

        Example:
            async with database.session() as session:
                result = await session.execute(select(User))
        """
        async with self.get_session_factory()() as session:
            try:
                yield session
                await session.commit()
            except DATABASE_ERRORS as exc:
                await session.rollback()
                raise StorageError(STORAGE_FAILURE_MESSAGE, cause=exc) from exc
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None
