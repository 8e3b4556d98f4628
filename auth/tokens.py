"""
auth/tokens.py -- Password hashing and session token generation.

Security design decisions:
  Passwords: bcrypt, used directly. Each hash carries its own random salt and
       a cost factor that makes brute force and precomputed tables expensive.
       bcrypt.checkpw compares digests in constant time. The _DUMMY_HASH
       constant lets AuthService.login() spend the same bcrypt work when the
       login is unknown, so response time does not reveal whether a user
       exists.

  Session tokens: secrets.token_hex(32) gives 256 bits from the OS CSPRNG,
       hex-encoded to 64 characters. Tokens are opaque capabilities; nothing
       is encoded in them and nothing is ever decoded from them.

Layer rule: no imports from api/ or assets/.
"""

from __future__ import annotations

import re
import secrets

import bcrypt

# bcrypt only looks at the first 72 bytes of its input. Rather than let two
# different long passwords hash identically, refuse them at hash time.
MAX_PASSWORD_BYTES = 72

SESSION_TOKEN_BYTES = 32

_TOKEN_RE = re.compile(rf"[0-9a-f]{{{SESSION_TOKEN_BYTES * 2}}}")


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Raises ValueError if the UTF-8 encoding is longer than 72 bytes.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Over-long input and malformed stored hashes both count as a mismatch.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        # Still pay for one bcrypt round so the rejection is not a fast path.
        bcrypt.checkpw(b"", _DUMMY_HASH.encode("utf-8"))
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = bcrypt.hashpw(b"assetvault_timing_dummy", bcrypt.gensalt()).decode("utf-8")


def burn_password_check(plain: str) -> None:
    """Run a bcrypt comparison whose result is discarded.

    Called when there is no stored hash to compare against (unknown login).
    """
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a new 64-character lowercase hex token (256 bits of entropy)."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def looks_like_session_token(value: str) -> bool:
    """Cheap shape check used to skip a store lookup for obvious garbage."""
    return _TOKEN_RE.fullmatch(value) is not None
