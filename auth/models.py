"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in assets/models.py -- dataclasses own domain shape; stores and the service
do the work.

Layer rule: no imports from api/ or assets/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A credential record. Created by the operator, immutable afterwards.

    password_hash is a bcrypt digest with the salt embedded; the plaintext is
    never stored or logged.
    """

    login: str
    password_hash: str
    id: int | None = None  # None before the record is written
    created_at: datetime | None = None


@dataclass(frozen=True)
class Session:
    """An issued bearer session.

    token is an opaque capability: anyone presenting it is treated as owner_id.
    Nothing is ever decoded from it. Frozen so a validated Session handed to
    route code cannot be mutated into a different identity.
    """

    token: str
    owner_id: int
    client_ip: str
    created_at: datetime
