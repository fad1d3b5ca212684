"""
Database Service - Core Infrastructure Layer

Purpose
-------
Centralized async database engine and session management for the Funtan
engine. Every state-changing game operation runs inside exactly one
`get_transaction()` block and takes row locks through it.

Responsibilities
----------------
- Initialize and manage a single AsyncEngine instance with connection pooling
- Provide async context managers for read-only sessions and atomic transactions
- Enforce transaction discipline: automatic commit on success, rollback on exception
- Support pessimistic row locking via `with_for_update=True`
- Expose health checks and schema creation for startup and tests
- Configure statement timeouts for PostgreSQL connections

Non-Responsibilities
--------------------
- Game rules, validation or event emission
- Migrations (schema is created from model metadata)

Architecture Notes
------------------
**Transaction Model**:
- `get_transaction()` is the primary interface for all state mutations
- Automatic commit on success, rollback on any exception
- Never manually call `session.commit()` inside service code
- Use pessimistic locks: `await session.get(Model, pk, with_for_update=True)`

**Backends**:
- PostgreSQL via asyncpg in production; `FOR UPDATE` row locks are real and
  `SET LOCAL statement_timeout` bounds every statement
- SQLite via aiosqlite for development and tests; `FOR UPDATE` is not
  rendered, so every transaction opens with `BEGIN IMMEDIATE` and takes the
  database write lock up front. Transactions serialize on that lock.

**Configuration** (from Config):
- DATABASE_URL, DATABASE_POOL_SIZE, DATABASE_MAX_OVERFLOW,
  DATABASE_POOL_RECYCLE, DATABASE_POOL_TIMEOUT,
  DATABASE_STATEMENT_TIMEOUT_MS, DATABASE_ECHO

Usage Example
-------------
>>> async with DatabaseService.get_transaction() as session:
>>>     player = await DatabaseService.get_locked_entity(session, Player, player_id)
>>>     player.bronze += 50
>>>     # Automatic commit on exit

Error Handling
--------------
**DatabaseInitializationError** - DATABASE_URL missing/invalid or engine creation failed
**DatabaseNotInitializedError** - session requested before initialize() or after shutdown()
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Optional, Type, TypeVar

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool

from funtan.core.config.config import Config
from funtan.core.database.base import Base
from funtan.core.exceptions import DatabaseError
from funtan.core.logging.logger import get_logger
from funtan.modules.shared.exceptions import FuntanDomainException

logger = get_logger(__name__)

T = TypeVar("T")


# ============================================================================
# Exceptions
# ============================================================================


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


# ============================================================================
# Configuration Snapshot
# ============================================================================


@dataclass(frozen=True)
class _DatabaseConfigSnapshot:
    """Immutable snapshot of database configuration for the engine's lifetime."""

    url: str
    echo: bool
    pool_class: Type[Pool]
    pool_size: int
    max_overflow: int
    pool_recycle: int
    pool_timeout: int
    statement_timeout_ms: int

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith(("postgresql://", "postgresql+asyncpg://"))

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def url_scheme(self) -> str:
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


# ============================================================================
# DatabaseService
# ============================================================================


class DatabaseService:
    """
    Centralized async database engine and session management.

    Public API
    ----------
    - initialize(url=None) / shutdown()
    - create_schema() / drop_schema()
    - get_session() -> read-only session
    - get_transaction() -> atomic write transaction (preferred)
    - get_locked_entity() -> SELECT ... FOR UPDATE by primary key
    - health_check() -> SELECT 1 liveness check
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _config_snapshot: Optional[_DatabaseConfigSnapshot] = None
    _init_lock: Optional[asyncio.Lock] = None

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    def _get_init_lock(cls) -> asyncio.Lock:
        if cls._init_lock is None:
            cls._init_lock = asyncio.Lock()
        return cls._init_lock

    @classmethod
    def _build_config_snapshot(cls, url: Optional[str]) -> _DatabaseConfigSnapshot:
        """
        Build an immutable configuration snapshot from Config.

        Raises
        ------
        DatabaseInitializationError
            If the database URL is missing or invalid.
        """
        database_url = url or getattr(Config, "DATABASE_URL", None)
        if not database_url or not isinstance(database_url, str):
            logger.error("DATABASE_URL is not configured or invalid")
            raise DatabaseInitializationError(
                "DATABASE_URL must be configured as a non-empty string"
            )

        use_null_pool = Config.is_testing() or database_url.startswith("sqlite")
        pool_class: Type[Pool] = NullPool if use_null_pool else AsyncAdaptedQueuePool

        snapshot = _DatabaseConfigSnapshot(
            url=database_url,
            echo=bool(Config.DATABASE_ECHO),
            pool_class=pool_class,
            pool_size=int(Config.DATABASE_POOL_SIZE),
            max_overflow=int(Config.DATABASE_MAX_OVERFLOW),
            pool_recycle=int(Config.DATABASE_POOL_RECYCLE),
            pool_timeout=int(Config.DATABASE_POOL_TIMEOUT),
            statement_timeout_ms=int(Config.DATABASE_STATEMENT_TIMEOUT_MS),
        )

        logger.debug(
            "Database configuration snapshot created",
            extra={
                "url_scheme": snapshot.url_scheme,
                "pool_class": pool_class.__name__,
                "pool_size": snapshot.pool_size,
                "statement_timeout_ms": snapshot.statement_timeout_ms,
            },
        )
        return snapshot

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Initialize the database engine and session factory.

        Idempotent: returns immediately if already initialized. `url`
        overrides Config.DATABASE_URL (tests pass a throwaway database).

        Raises
        ------
        DatabaseInitializationError
            If configuration is invalid or engine creation fails.
        """
        async with cls._get_init_lock():
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            logger.info("Initializing DatabaseService")

            try:
                config = cls._build_config_snapshot(url)

                engine_kwargs: dict[str, Any] = {
                    "echo": config.echo,
                    "poolclass": config.pool_class,
                }
                if config.pool_class is AsyncAdaptedQueuePool:
                    engine_kwargs.update(
                        {
                            "pool_size": config.pool_size,
                            "max_overflow": config.max_overflow,
                            "pool_recycle": config.pool_recycle,
                            "pool_timeout": config.pool_timeout,
                            "pool_pre_ping": True,
                        }
                    )
                if config.is_sqlite:
                    # Wait on the database write lock instead of failing fast.
                    engine_kwargs["connect_args"] = {"timeout": 30}

                cls._engine = create_async_engine(config.url, **engine_kwargs)
                if config.is_sqlite:
                    cls._install_sqlite_locking(cls._engine)
                cls._session_factory = async_sessionmaker(
                    bind=cls._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
                cls._config_snapshot = config

                logger.info(
                    "DatabaseService initialized successfully",
                    extra={
                        "url_scheme": config.url_scheme,
                        "pool_class": config.pool_class.__name__,
                    },
                )

            except Exception as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

    @staticmethod
    def _install_sqlite_locking(engine: AsyncEngine) -> None:
        """
        Make every SQLite transaction take the write lock at BEGIN.

        pysqlite defers BEGIN until the first write, so a locked read and
        the write that follows it would otherwise race with other
        connections. Driver-level transaction handling is switched off and
        SQLAlchemy emits the BEGIN itself.
        """

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine and reset state. Safe to call multiple times."""
        async with cls._get_init_lock():
            if cls._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")
            try:
                await cls._engine.dispose()
            finally:
                cls._engine = None
                cls._session_factory = None
                cls._config_snapshot = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    # ========================================================================
    # Schema
    # ========================================================================

    @classmethod
    async def create_schema(cls) -> None:
        """Create all tables registered on the declarative base."""
        cls._ensure_initialized()
        assert cls._engine is not None

        # Importing the models package registers every table on Base.metadata.
        import funtan.database.models  # noqa: F401

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database schema created",
            extra={"tables": sorted(Base.metadata.tables.keys())},
        )

    @classmethod
    async def drop_schema(cls) -> None:
        """Drop all tables registered on the declarative base."""
        cls._ensure_initialized()
        assert cls._engine is not None

        import funtan.database.models  # noqa: F401

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database schema dropped")

    # ========================================================================
    # Health Check
    # ========================================================================

    @classmethod
    async def health_check(cls) -> bool:
        """
        Lightweight `SELECT 1` reachability check.

        Returns False instead of raising on connectivity failures.
        """
        if cls._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError, OSError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        finally:
            logger.debug(
                "Database health check completed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    @classmethod
    def _ensure_initialized(cls) -> None:
        if cls._session_factory is None or cls._engine is None:
            logger.error("DatabaseService operation attempted before initialization")
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )

    @classmethod
    def _get_config_snapshot(cls) -> _DatabaseConfigSnapshot:
        if cls._config_snapshot is None:
            raise DatabaseNotInitializedError("DatabaseService is not initialized")
        return cls._config_snapshot

    @classmethod
    async def _apply_statement_timeout(cls, session: AsyncSession) -> None:
        config = cls._get_config_snapshot()
        if config.is_postgres:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {config.statement_timeout_ms}")
            )

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session without automatic commit.

        Use for read-only operations. For writes, use `get_transaction()`.
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
            finally:
                await session.close()
                logger.debug(
                    "Database session closed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session wrapped in an atomic transaction.

        This is the **primary interface for all state mutations**.

        On success the transaction commits. On any exception it rolls back
        and re-raises. Driver errors are wrapped in `DatabaseError`.
        Game-rule rejections (domain exceptions) are logged at debug level,
        everything else at error level with traceback.

        Notes
        -----
        - Never manually call `session.commit()` or `session.rollback()`
        - Use `with_for_update=True` for pessimistic locking
        - Keep transactions short to avoid blocking other operations
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
                await session.commit()
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )

            except (OperationalError, DBAPIError) as exc:
                await session.rollback()
                logger.error(
                    f"{type(exc).__name__} in transaction; rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                    exc_info=True,
                )
                raise DatabaseError("transaction", exc) from exc

            except Exception as exc:
                await session.rollback()
                expected = isinstance(exc, FuntanDomainException)
                logger.log(
                    logging.DEBUG if expected else logging.ERROR,
                    "Transaction rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                    exc_info=not expected,
                )
                raise

            finally:
                await session.close()

    # ========================================================================
    # Pessimistic Locking Helper
    # ========================================================================

    @classmethod
    async def get_locked_entity(
        cls,
        session: AsyncSession,
        model: Type[T],
        primary_key: Any,
    ) -> Optional[T]:
        """
        Fetch an entity with a pessimistic row lock (SELECT FOR UPDATE).

        Syntactic sugar over `session.get(Model, pk, with_for_update=True)`.
        Must be used within a get_transaction() context.
        """
        return await session.get(model, primary_key, with_for_update=True)

    @classmethod
    def dialect_name(cls) -> str:
        cls._ensure_initialized()
        assert cls._engine is not None
        return cls._engine.dialect.name
