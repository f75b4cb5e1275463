"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond trivial helpers).
Mirrors tasks/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass
class Account:
    """A registered user.

    email is stored lower-cased; the store normalizes on both write and lookup
    so uniqueness is effectively case-insensitive.

    password_hash is None on identities handed to route handlers (see
    public()). Only the store and the credential check ever see the hash.
    """

    name: str
    email: str
    id: int | None = None
    password_hash: str | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""

    def public(self) -> Account:
        """Return a copy with the password hash stripped."""
        return replace(self, password_hash=None)


@dataclass(frozen=True)
class SessionToken:
    """Decoded contents of a bearer token.

    Tokens are never persisted. The signed string carries everything needed to
    validate it, so there is no server-side session table and no way to
    revoke a token before expires_at.
    """

    subject_id: int
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
