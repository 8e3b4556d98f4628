"""
auth/service.py -- Login, token validation, and the single-active-session policy.

AuthService holds no mutable state of its own. Every durable fact lives in
the UserStore and SessionStore passed to its constructor, so one instance is
safely shared by every request worker.

Session lifecycle:
  Created -> Valid (age <= SESSION_TTL) -> Expired (detected lazily on
  validation) -> Deleted (next login by the same owner, or the sweep).
  Nothing moves back from Expired or Deleted.

Policies:
  Single active session: login() replaces every session of the user with the
      new one in one transaction (SessionStore.replace_for_owner).
  Fixed expiry: the TTL is measured from creation. Validation never extends
      it and never deletes; purge_expired_sessions() does the cleanup.
  Uniform failure: unknown login and wrong password raise the same
      InvalidCredentials, after the same amount of bcrypt work.

Layer rule: no imports from api/ or assets/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from auth.models import Session
from auth.store import SessionStore, UserStore
from auth.tokens import burn_password_check, generate_session_token, looks_like_session_token, verify_password
from core.database import utcnow
from core.errors import InvalidCredentials, InvalidToken, SessionExpired

logger = logging.getLogger("assetvault.auth")

SESSION_TTL = timedelta(hours=24)


class AuthService:
    """Authenticates credentials and issues, validates and sweeps sessions.

    Usage:
        service = AuthService(UserStore(engine), SessionStore(engine))
        token = service.login("alice", "correct-pw", client_ip="203.0.113.7")
        session = service.validate_token(token)   # session.owner_id is the tenant
    """

    def __init__(
        self,
        user_store: UserStore,
        session_store: SessionStore,
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta = SESSION_TTL,
    ) -> None:
        self.user_store = user_store
        self.session_store = session_store
        self.clock = clock
        self.ttl = ttl

    def login(self, login: str, password: str, client_ip: str) -> str:
        """Verify credentials and return a fresh bearer token.

        Every earlier session of the user is removed in the same transaction
        that stores the new one. Raises InvalidCredentials on any mismatch and
        StoreFailure if persistence fails.
        """
        user = self.user_store.get_by_login(login)
        if user is None:
            burn_password_check(password)
            raise InvalidCredentials("unknown login")
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials("password mismatch")

        session = Session(
            token=generate_session_token(),
            owner_id=user.id,
            client_ip=client_ip,
            created_at=self.clock(),
        )
        replaced = self.session_store.replace_for_owner(session)
        logger.info("Session issued: user=%d ip=%s replaced=%d", user.id, client_ip, replaced)
        return session.token

    def validate_token(self, token: str) -> Session:
        """Return the live Session for token.

        Raises InvalidToken if no session exists, SessionExpired if it is older
        than the TTL. Read-only: calling it any number of times changes nothing.
        """
        if not looks_like_session_token(token):
            raise InvalidToken("malformed token")
        session = self.session_store.get(token)
        if session is None:
            raise InvalidToken("no such session")
        if self.clock() - session.created_at > self.ttl:
            raise SessionExpired(f"session of user {session.owner_id} expired")
        return session

    def purge_expired_sessions(self) -> int:
        """Delete every session past its TTL. Returns the number removed."""
        removed = self.session_store.delete_expired(self.clock() - self.ttl)
        if removed:
            logger.info("Expired sessions purged: %d", removed)
        return removed
