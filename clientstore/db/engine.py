"""Async SQLAlchemy engine construction and table provisioning.

Pool sizing for stores that open their own engine:
- 10 connections kept idle in the pool (pool_size)
- up to 100 open at once (pool_size + max_overflow)
- connections recycled after one hour
"""

from __future__ import annotations

import logging

from sqlalchemy import Connection, Table, inspect
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from clientstore.core.metrics import TABLES_CREATED

logger = logging.getLogger(__name__)

POOL_SIZE = 10
MAX_OPEN_CONNECTIONS = 100
POOL_RECYCLE_SECONDS = 60 * 60


def create_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Build an async engine with the store's pool parameters.

    No connection is made here; the first one is opened by provisioning.
    """
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OPEN_CONNECTIONS - POOL_SIZE,
        pool_recycle=POOL_RECYCLE_SECONDS,
    )


async def provision_table(engine: AsyncEngine, table: Table) -> bool:
    """Create `table` and its indexes unless it already exists.

    Returns True when the table was created by this call.
    """
    async with engine.begin() as conn:
        created = await conn.run_sync(_create_if_absent, table)
    if created:
        TABLES_CREATED.inc()
        logger.info("Created client table", extra={"table": table.name})
    else:
        logger.debug("Client table already present", extra={"table": table.name})
    return created


def _create_if_absent(conn: Connection, table: Table) -> bool:
    if inspect(conn).has_table(table.name, schema=table.schema):
        return False
    table.create(conn)
    return True
