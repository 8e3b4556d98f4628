"""
core/database.py -- SQLAlchemy Core engine factory and the shared schema.

Uses SQLAlchemy Core (not ORM) so the dataclasses in auth/models.py and
assets/models.py remain the authoritative domain representation. Swapping
SQLite for PostgreSQL is a connection string change, not a rewrite.

All three tables live on one MetaData because sessions and assets reference
users.id. The stores receive an Engine from create_db_engine() through their
constructors; nothing in this module holds a global engine.

Timestamps are stored as ISO 8601 strings in UTC with microsecond precision.
Fixed-width formatting keeps lexical order equal to chronological order, which
the expired-session sweep relies on.

Layer rule: core/ is the kernel. No imports from api/, auth/, or assets/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.errors import StoreFailure

logger = logging.getLogger("assetvault.storage")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("login", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),  # bcrypt, salt embedded
    Column("created_at", String(32), nullable=False),
)

sessions = Table(
    "sessions",
    metadata,
    Column("id", String(128), primary_key=True),  # the bearer token itself
    Column("uid", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("ip_address", String(45), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Index("ix_sessions_uid", "uid"),
    Index("ix_sessions_created_at", "created_at"),
)

# Note: no UNIQUE(name, uid). Duplicate names are the store's concern; reads
# return the newest row and deletes remove every row for the pair.
assets = Table(
    "assets",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("uid", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("data", LargeBinary, nullable=False),
    Column("created_at", String(32), nullable=False),
    Index("ix_assets_uid_name", "uid", "name"),
)


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. In-memory databases ignore the WAL request.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build an Engine for db_url and create any missing tables.

    Usage:
        engine = create_db_engine("sqlite:///assetvault.db")
        engine = create_db_engine("postgresql+psycopg://user:pw@host/db")
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    metadata.create_all(engine)
    return engine


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


@contextmanager
def store_operation(operation: str) -> Iterator[None]:
    """Re-raise driver and SQL errors as StoreFailure(operation).

    IntegrityError passes through untouched: a constraint violation (such as a
    duplicate login) is a meaningful answer for the caller, not an outage.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        logger.error("Store failure during %s: %s", operation, exc.__class__.__name__)
        raise StoreFailure(operation) from exc


# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        # Rows written by other tools may lack an offset; they are UTC by convention.
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
