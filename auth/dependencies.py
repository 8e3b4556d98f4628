"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

One auth method only: the Authorization header carrying "Bearer <token>".
Cookies and query parameters are never consulted.

extract_bearer_token() is the pure parsing step. It is case-sensitive on the
"Bearer " prefix and rejects an empty token, and it runs before anything
touches the session store: a malformed header costs no database round-trip.

get_current_session() raises core.errors.Unauthorized (or one of its
subclasses from AuthService) on failure. api/main.py renders every one of them
as the same 401 body, so a client cannot tell "no such session" from
"expired".

Layer rule: no imports from api/ or assets/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Session
from auth.service import AuthService
from core.errors import Unauthorized

logger = logging.getLogger("assetvault.auth")

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(header_value: str | None) -> str | None:
    """Return the token from an Authorization header value, or None if malformed."""
    if not header_value or not header_value.startswith(_BEARER_PREFIX):
        return None
    token = header_value[len(_BEARER_PREFIX) :]
    if not token or token != token.strip():
        return None
    return token


def client_ip(request: Request) -> str:
    return request.client.host if request.client else ""


def get_current_session(request: Request) -> Session:
    """Require a valid bearer session.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(session: Session = Depends(get_current_session)): ...

    On success the owner id is also stored on request.state.owner_id so the
    error handlers can log the actor.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        logger.warning(
            "Rejected request without bearer token: %s %s ip=%s",
            request.method,
            request.url.path,
            client_ip(request),
        )
        raise Unauthorized("missing or malformed Authorization header")

    auth_service: AuthService = request.app.state.auth_service
    try:
        session = auth_service.validate_token(token)
    except Unauthorized as exc:
        logger.warning(
            "Rejected bearer token: %s %s ip=%s reason=%s",
            request.method,
            request.url.path,
            client_ip(request),
            exc,
        )
        raise

    request.state.owner_id = session.owner_id
    return session
