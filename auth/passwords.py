"""
auth/passwords.py -- Password hashing and credential checks.

Security design decisions:
  bcrypt directly (no passlib wrapper). passlib's internal wrap-bug detection
       creates a password longer than 72 bytes, which bcrypt 4.x rejects with
       an explicit error. Direct bcrypt usage has no compatibility shim.

  Work factor 12: each hash costs a few hundred milliseconds, which is what
       makes offline brute force of a leaked hash expensive.

  72-byte input: bcrypt only reads the first 72 bytes of a password. Older
       releases truncated silently, newer ones raise. We truncate explicitly
       in both hash and verify so behavior does not depend on the installed
       bcrypt version.

  _DUMMY_HASH enables timing equalization in authenticate_account() so
       response time does not reveal whether an email is registered.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import Account
    from auth.store import AccountStore

logger = logging.getLogger("tasktracker.auth")

DEFAULT_ROUNDS = 12
_MAX_PASSWORD_BYTES = 72


class HashingError(Exception):
    """Raised when bcrypt fails or a stored hash is not a bcrypt hash."""


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_MAX_PASSWORD_BYTES]


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    if not isinstance(plain, str):
        raise TypeError("password must be a str")
    try:
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")
    except ValueError as exc:
        raise HashingError("bcrypt failed to hash password") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A mismatch is False, not an exception. A stored value that is not a
    well-formed bcrypt hash raises HashingError -- that is data corruption,
    not a wrong password, and must not be reported as one.
    """
    if not isinstance(plain, str):
        raise TypeError("password must be a str")
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError) as exc:
        raise HashingError("stored password hash is malformed") from exc


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("tasktracker_timing_dummy")


def authenticate_account(store: AccountStore, email: str, password: str) -> Account | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the Account on success, None on any credential failure. Store and
    hashing failures propagate to the caller.
    """
    account = store.get_by_email(email)
    if account is None or account.password_hash is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, account.password_hash):
        return None
    return account
