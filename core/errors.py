"""
core/errors.py -- Typed failure taxonomy shared by the stores, the auth
service and the HTTP layer.

Each exception carries the HTTP status and the terse public message it maps
to. The message is the only text that ever reaches a client; the exception's
own str() is for server logs. api/main.py registers one handler for
ServiceError, so the collapse to a uniform client-facing body happens in
exactly one place.

Layer rule: core/ is the kernel. No imports from api/, auth/, or assets/.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class. Subclasses override status_code and public_message."""

    status_code: int = 500
    public_message: str = "internal error"


class InvalidCredentials(ServiceError):
    """Unknown login or wrong password. The two are indistinguishable to callers."""

    status_code = 401
    public_message = "invalid login/password"


class Unauthorized(ServiceError):
    """Missing or malformed bearer credentials."""

    status_code = 401
    public_message = "unauthorized"


class InvalidToken(Unauthorized):
    """No session exists for the presented token."""


class SessionExpired(Unauthorized):
    """A session exists but is older than the TTL."""


class NotFound(ServiceError):
    """Asset absent or owned by someone else."""

    status_code = 404
    public_message = "not found"


class BadRequest(ServiceError):
    status_code = 400
    public_message = "bad request"


class PayloadTooLarge(ServiceError):
    status_code = 413
    public_message = "payload too large"


class StoreFailure(ServiceError):
    """Any persistence error. `operation` names the store call that failed."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"store operation failed: {operation}")
        self.operation = operation
