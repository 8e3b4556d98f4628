"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as assets/store.py).
UserStore and SessionStore are the repositories; _row_to_user /
_row_to_session are the mappers. The service and route code never touch SQL
directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Error policy:
  Every SQLAlchemyError except IntegrityError is re-raised as
  core.errors.StoreFailure naming the operation (see
  core.database.store_operation). "Not found" is not an error at this layer --
  lookups return None.

Atomicity:
  SessionStore.replace_for_owner() runs its DELETE and INSERT inside one
  engine.begin() block, so a crash between the two cannot leave a half-applied
  login and a concurrent reader never sees the new row alongside the old ones.

Layer rule: no imports from api/ or assets/.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.engine import Engine

from auth.models import Session, User
from core.database import from_db_timestamp, sessions, store_operation, to_db_timestamp, users, utcnow


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(engine)
        uid = store.create_user(User(login="alice", password_hash=hash_password("secret")))
        user = store.get_by_login("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the login already exists.
        """
        with store_operation("create_user"), self.engine.begin() as conn:
            result = conn.execute(
                users.insert().values(
                    login=user.login,
                    password_hash=user.password_hash,
                    created_at=to_db_timestamp(user.created_at or utcnow()),
                )
            )
            return result.inserted_primary_key[0]

    def get_by_login(self, login: str) -> User | None:
        """Look up a user by exact login (case-sensitive). Returns None if not found."""
        with store_operation("get_user_by_login"), self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.login == login)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with store_operation("get_user_by_id"), self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for Session records, keyed by token."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def replace_for_owner(self, session: Session) -> int:
        """Delete every session of session.owner_id, then insert session.

        Both statements share one transaction. Returns the number of prior
        sessions removed.
        """
        with store_operation("replace_sessions"), self.engine.begin() as conn:
            removed = conn.execute(sessions.delete().where(sessions.c.uid == session.owner_id)).rowcount
            conn.execute(
                sessions.insert().values(
                    id=session.token,
                    uid=session.owner_id,
                    ip_address=session.client_ip,
                    created_at=to_db_timestamp(session.created_at),
                )
            )
        return removed

    def get(self, token: str) -> Session | None:
        """Return the session for token, or None. Never mutates."""
        with store_operation("get_session"), self.engine.connect() as conn:
            row = conn.execute(sessions.select().where(sessions.c.id == token)).fetchone()
        return _row_to_session(row) if row is not None else None

    def list_for_owner(self, owner_id: int) -> list[Session]:
        with store_operation("list_sessions"), self.engine.connect() as conn:
            rows = conn.execute(
                sessions.select().where(sessions.c.uid == owner_id).order_by(sessions.c.created_at)
            ).fetchall()
        return [_row_to_session(r) for r in rows]

    def delete_expired(self, cutoff: datetime) -> int:
        """Delete all sessions created before cutoff. Returns rows removed."""
        with store_operation("delete_expired_sessions"), self.engine.begin() as conn:
            removed = conn.execute(sessions.delete().where(sessions.c.created_at < to_db_timestamp(cutoff))).rowcount
        return removed


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        login=row.login,
        password_hash=row.password_hash,
        created_at=from_db_timestamp(row.created_at),
    )


def _row_to_session(row) -> Session:
    return Session(
        token=row.id,
        owner_id=row.uid,
        client_ip=row.ip_address,
        created_at=from_db_timestamp(row.created_at),
    )
