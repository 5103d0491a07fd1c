"""SQLAlchemy table definition for client records.

The table name is chosen per store at construction time, so the table is
built with SQLAlchemy Core against a MetaData owned by that store instead
of a declarative class with a fixed __tablename__.

Row layout:
  id                     surrogate key
  created_at/updated_at  set at insert
  deleted_at             soft-delete marker; never set here, always filtered
  client_id              unique lookup key
  client_secret, domain, public, user_id
                         write-once copies of fields inside `data`
  data                   JSON document; the source of truth for reads
"""

from __future__ import annotations

import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def build_client_table(table_name: str, metadata: MetaData | None = None) -> Table:
    """Return the client Table named `table_name`.

    Index names are prefixed with the table name so several client tables
    can live in one schema.
    """
    if metadata is None:
        metadata = MetaData()
    return Table(
        table_name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("created_at", DateTime(timezone=True), nullable=False, default=_utcnow),
        Column("updated_at", DateTime(timezone=True), nullable=False, default=_utcnow),
        Column("deleted_at", DateTime(timezone=True), nullable=True, index=True),
        Column("client_id", String(64), nullable=False, unique=True, index=True),
        Column("client_secret", String(128), nullable=False, default=""),
        Column("domain", String(512), nullable=False, default=""),
        Column("data", Text, nullable=False),
        Column("public", Boolean, nullable=False, default=False),
        Column("user_id", BigInteger, nullable=False, default=0, index=True),
    )
