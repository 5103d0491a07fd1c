"""Relational implementation of ClientStore (SQLAlchemy, async)."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from sqlalchemy import Table, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from clientstore.core.config import ClientStoreConfig, Settings
from clientstore.core.metrics import STORE_OPERATION_DURATION, STORE_OPERATIONS
from clientstore.db.engine import create_engine, provision_table
from clientstore.db.tables import build_client_table
from clientstore.errors import (
    ClientAlreadyExistsError,
    ClientNotFoundError,
    ConfigurationError,
    DeadlineExceededError,
    SerializationError,
    StorageError,
)
from clientstore.models.oauth_client import ClientInfo, OAuthClient
from clientstore.repos.client_store import decode_client, encode_client, owner_id

logger = logging.getLogger(__name__)


class SqlClientStore:
    """Satisfies the ClientStore Protocol using a relational table.

    Build with one of the async constructors, which make sure the table
    exists before returning:

        store = await SqlClientStore.connect(config)       # own engine
        store = await SqlClientStore.from_engine(config, engine)  # shared

    The store keeps no per-call state; every operation checks out its own
    session, so one instance can serve many concurrent tasks.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table: Table,
        *,
        owns_engine: bool = False,
        operation_timeout: float | None = None,
    ) -> None:
        self._engine = engine
        self._table = table
        self._owns_engine = owns_engine
        self._operation_timeout = operation_timeout
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    async def connect(cls, config: ClientStoreConfig) -> SqlClientStore:
        """Open a new engine from config.database_url and provision the table.

        The returned store owns the engine; close() disposes it.
        """
        if not config.database_url:
            raise ConfigurationError("database_url is required to open a connection pool")
        try:
            engine = create_engine(config.database_url, echo=config.echo)
        except (SQLAlchemyError, ImportError, TypeError) as exc:
            raise ConfigurationError(f"cannot create database engine: {exc}") from exc

        try:
            return await cls._provisioned(config, engine, owns_engine=True)
        except ConfigurationError:
            await engine.dispose()
            raise

    @classmethod
    async def from_engine(
        cls, config: ClientStoreConfig, engine: AsyncEngine
    ) -> SqlClientStore:
        """Reuse an engine shared with other stores; pool settings are left alone."""
        return await cls._provisioned(config, engine, owns_engine=False)

    @classmethod
    async def from_settings(cls, settings: Settings) -> SqlClientStore:
        return await cls.connect(ClientStoreConfig.from_settings(settings))

    @classmethod
    async def _provisioned(
        cls, config: ClientStoreConfig, engine: AsyncEngine, *, owns_engine: bool
    ) -> SqlClientStore:
        table = build_client_table(config.resolved_table_name)
        try:
            await provision_table(engine, table)
        except (SQLAlchemyError, OSError) as exc:
            raise ConfigurationError(
                f"cannot provision client table {table.name!r}: {exc}"
            ) from exc
        return cls(
            engine,
            table,
            owns_engine=owns_engine,
            operation_timeout=config.operation_timeout,
        )

    @property
    def table(self) -> Table:
        return self._table

    async def close(self) -> None:
        if self._owns_engine:
            await self._engine.dispose()

    async def __aenter__(self) -> SqlClientStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- ClientStore ---

    async def get_by_id(
        self, client_id: str, *, timeout: float | None = None
    ) -> OAuthClient | None:
        # Empty id is "no client" rather than an unknown one
        if not client_id:
            return None

        with self._instrumented("get", client_id):
            async with self._deadline("get", client_id, timeout):
                data = await self._fetch_data(client_id)
            if data is None:
                logger.debug(
                    "Client not found",
                    extra={"client_id": client_id, "table": self._table.name},
                )
                raise ClientNotFoundError(client_id)
            return decode_client(client_id, data)

    async def create(
        self, client: ClientInfo, *, timeout: float | None = None
    ) -> None:
        with self._instrumented("create", client.client_id):
            values = {
                "client_id": client.client_id,
                "client_secret": client.secret,
                "domain": client.domain,
                "data": encode_client(client),
                "public": client.is_public,
                "user_id": owner_id(client),
            }
            async with self._deadline("create", client.client_id, timeout):
                await self._insert(client.client_id, values)
            logger.info(
                "Created client",
                extra={"client_id": client.client_id, "table": self._table.name},
            )

    # --- internals ---

    async def _fetch_data(self, client_id: str) -> str | None:
        t = self._table
        stmt = (
            select(t.c.data)
            .where(t.c.client_id == client_id)
            .where(t.c.deleted_at.is_(None))
            .order_by(t.c.id)
            .limit(1)
        )
        async with self._session_factory() as session:
            try:
                return (await session.execute(stmt)).scalar_one_or_none()
            except (SQLAlchemyError, OSError) as exc:
                raise StorageError(f"lookup of client {client_id!r} failed: {exc}") from exc

    async def _insert(self, client_id: str, values: dict[str, Any]) -> None:
        async with self._session_factory() as session:
            try:
                await session.execute(insert(self._table).values(**values))
                await session.commit()
            except IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise ClientAlreadyExistsError(client_id) from exc
                raise StorageError(f"insert of client {client_id!r} failed: {exc}") from exc
            except (SQLAlchemyError, OSError) as exc:
                raise StorageError(f"insert of client {client_id!r} failed: {exc}") from exc

    @asynccontextmanager
    async def _deadline(
        self, operation: str, client_id: str, timeout: float | None
    ) -> AsyncIterator[None]:
        seconds = self._operation_timeout if timeout is None else timeout
        try:
            async with asyncio.timeout(seconds):
                yield
        except TimeoutError as exc:
            raise DeadlineExceededError(
                f"{operation} of client {client_id!r} exceeded {seconds}s"
            ) from exc

    @contextmanager
    def _instrumented(self, operation: str, client_id: str) -> Iterator[None]:
        start = time.perf_counter()
        outcome = "ok"
        try:
            yield
        except ClientNotFoundError:
            outcome = "not_found"
            raise
        except ClientAlreadyExistsError:
            outcome = "duplicate"
            raise
        except DeadlineExceededError:
            outcome = "timeout"
            raise
        except SerializationError:
            outcome = "serialization_error"
            raise
        except StorageError:
            outcome = "storage_error"
            raise
        except asyncio.CancelledError:
            outcome = "cancelled"
            raise
        except Exception:
            outcome = "error"
            raise
        finally:
            elapsed = time.perf_counter() - start
            STORE_OPERATIONS.labels(operation=operation, outcome=outcome).inc()
            STORE_OPERATION_DURATION.labels(operation=operation).observe(elapsed)
            if outcome not in ("ok", "not_found"):
                logger.warning(
                    "Client store %s failed: %s",
                    operation,
                    outcome,
                    extra={
                        "client_id": client_id,
                        "table": self._table.name,
                        "operation": operation,
                        "duration_ms": round(elapsed * 1000, 2),
                    },
                )


# SQLSTATE unique_violation (PostgreSQL)
_UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique-index violation.

    client_id carries the table's only unique index, so any unique
    violation on insert is a duplicate client. Other integrity failures
    (NOT NULL, CHECK, foreign keys) are not.
    """
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == _UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)
