"""
TechGear Catalog Backend — Database Handle & Readiness Gate
=============================================================

What:  Async SQLAlchemy engine lifecycle, the connection-readiness gate,
       query time ceilings, and storage error translation.
Why:   Storage connectivity is a process-wide resource. Keeping it behind an
       explicit handle (instead of a module-level engine) lets tests and
       collaborators inject their own database and lets the readiness gate
       reason about a single, observable state.
How:   DatabaseHandle owns the engine and session factory and tracks one of
       four states. Routes obtain sessions through get_db_session(), which
       calls ensure_ready() first; services run queries through
       handle.run() inside storage_errors().

State Machine:
    DISCONNECTED ──connect()──▶ CONNECTING ──probe ok──▶ READY
                                     │                    │
                                     └──probe fails──▶ FAILED ◀── query lost connection
    FAILED / DISCONNECTED ──ensure_ready()──▶ polls connect() every
    db_ready_poll_interval seconds, at most db_ready_max_attempts times,
    then gives up with ServiceUnavailableError (503).
"""

import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Dict, Optional, TypeVar

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from app.config import Settings
from app.exceptions import (
    CatalogError,
    ConflictError,
    DatabaseError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so that they share one metadata
    object (used by Alembic and by the test suite to create tables).
    """
    pass


class ConnectionState(str, enum.Enum):
    """Observable connectivity state of the storage backend."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


class DatabaseHandle:
    """
    Injectable handle around the async engine.

    Attributes:
        url:            Connection string ("" means not configured)
        state:          Current ConnectionState
        query_timeout:  Ceiling in seconds for any single query
        poll_interval:  Seconds between readiness probes
        max_attempts:   Readiness probes before giving up
    """

    def __init__(
        self,
        url: str,
        *,
        query_timeout: float = 5.0,
        poll_interval: float = 0.5,
        max_attempts: int = 10,
        pool_size: int = 10,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = url
        self.query_timeout = query_timeout
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.state = ConnectionState.DISCONNECTED
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._echo = echo

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseHandle":
        return cls(
            settings.database_url,
            query_timeout=settings.db_query_timeout,
            poll_interval=settings.db_ready_poll_interval,
            max_attempts=settings.db_ready_max_attempts,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def is_ready(self) -> bool:
        return self.state is ConnectionState.READY

    # ── Engine construction ───────────────────────────────────────────────

    def _engine_options(self) -> Dict[str, Any]:
        """
        Build create_async_engine() keyword arguments for the configured URL.

        SQLite (used by the test suite) has no server-side pool or statement
        timeout, so those options are only applied to server databases.
        """
        options: Dict[str, Any] = {"echo": self._echo}
        if self.url.startswith("sqlite"):
            return options

        options.update(
            pool_size=self._pool_size,
            max_overflow=self._max_overflow,
            pool_pre_ping=self._pool_pre_ping,
            pool_recycle=3600,
        )
        if self.url.startswith("postgresql+asyncpg"):
            # Server-side ceiling matching the client-side one in run()
            timeout_ms = str(int(self.query_timeout * 1000))
            options["connect_args"] = {"server_settings": {"statement_timeout": timeout_ms}}
        return options

    def _ensure_engine(self) -> AsyncEngine:
        if self.engine is None:
            self.engine = create_async_engine(self.url, **self._engine_options())
            # expire_on_commit=False: response models read attributes after commit
            self.session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self.engine

    # ── Connectivity ──────────────────────────────────────────────────────

    async def connect(self) -> bool:
        """
        Establish (or re-establish) connectivity with a `SELECT 1` probe.

        Returns:
            True when the probe succeeded and the handle is READY.
            Never raises; failures move the handle to FAILED.
        """
        if not self.configured:
            self.state = ConnectionState.FAILED
            return False

        self.state = ConnectionState.CONNECTING
        try:
            engine = self._ensure_engine()
            async with engine.connect() as conn:
                await asyncio.wait_for(conn.execute(text("SELECT 1")), self.query_timeout)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ImportError, ValueError) as e:
            # ImportError: the URL names a driver that is not installed
            self.state = ConnectionState.FAILED
            logger.warning("Database connection attempt failed: %s", type(e).__name__)
            return False

        if self.state is not ConnectionState.READY:
            logger.info("Database connection ready")
        self.state = ConnectionState.READY
        return True

    async def ensure_ready(self) -> None:
        """
        Readiness gate: return when storage is usable, otherwise 503.

        Raises:
            ServiceUnavailableError: Not configured, or still unreachable after
                                     max_attempts probes.
        """
        if self.is_ready:
            return

        if not self.configured:
            self.state = ConnectionState.FAILED
            raise ServiceUnavailableError(
                message="Database is not configured. Please try again later.",
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(lambda ready: ready is False),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
        )
        try:
            await retrying(self.connect)
        except RetryError:
            logger.error(
                "Database still unreachable after %d attempts", self.max_attempts
            )
            raise ServiceUnavailableError(
                context={"attempts": self.max_attempts},
            )

    def mark_failed(self) -> None:
        """Force the next request through the readiness gate again."""
        if self.state is ConnectionState.READY:
            logger.warning("Database connection marked as failed")
        self.state = ConnectionState.FAILED

    # ── Query helpers ─────────────────────────────────────────────────────

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await a storage operation under the query time ceiling.

        A timeout surfaces as asyncio.TimeoutError, which storage_errors()
        turns into ServiceUnavailableError.
        """
        return await asyncio.wait_for(awaitable, timeout=self.query_timeout)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session that commits on success and rolls back on error.

        Callers must have passed ensure_ready() first.
        """
        self._ensure_engine()
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def storage_errors(
        self, conflict_message: str = "Resource already exists"
    ) -> AsyncGenerator[None, None]:
        """
        Translate driver failures into the application's error taxonomy.

        Mapping:
            CatalogError                         → re-raised unchanged
            IntegrityError (unique violation)    → ConflictError (400)
            Timeout / Operational / Interface    → ServiceUnavailableError (503)
            Any other SQLAlchemyError            → DatabaseError (500)
        """
        try:
            yield
        except CatalogError:
            raise
        except IntegrityError as e:
            logger.info("Integrity violation: %s", type(e.orig).__name__ if e.orig else e)
            raise ConflictError(message=conflict_message)
        except (asyncio.TimeoutError, OperationalError, InterfaceError, DisconnectionError) as e:
            self.mark_failed()
            logger.error("Storage unavailable: %s", type(e).__name__)
            raise ServiceUnavailableError(context={"error_type": type(e).__name__})
        except SQLAlchemyError as e:
            logger.error("Database error: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def dispose(self) -> None:
        """Close all pooled connections; called at application shutdown."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
        self.state = ConnectionState.DISCONNECTED


# ── Session Dependency ────────────────────────────────────────────────────
def get_db_handle(request: Request) -> DatabaseHandle:
    return request.app.state.db


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The readiness gate runs first, so a route that depends on a session
    answers 503 instead of hanging when storage is down.

    Example usage in a route:
        @router.get("/products")
        async def list_products(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    handle = get_db_handle(request)
    await handle.ensure_ready()
    async with handle.session() as session:
        yield session
