"""
auth/tokens.py -- Bearer token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the account id as the subject
       claim plus iat/exp. Nothing else about the account goes into the token,
       so a stolen token leaks no profile data.

  Secret: injected into TokenService at construction (see api/main.py
       lifespan). This module never reads configuration itself, so a test or a
       second app instance can run with its own key.

  Stateless: the server keeps no session table. Verification is a pure
       function of (token, secret, now). The cost is that a token cannot be
       revoked before it expires -- the 30-day window is accepted explicitly.

  Expiry: checked here against the injected clock rather than inside jose,
       so expiry is deterministic under test and reported as its own kind.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jws, jwt
from jose.exceptions import JWSError

from auth.models import SessionToken

logger = logging.getLogger("tasktracker.auth")

_ALGORITHM = "HS256"

DEFAULT_VALIDITY = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenErrorKind(str, enum.Enum):
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"


class TokenError(Exception):
    """Raised by TokenService.verify() for any token that must not be trusted."""

    def __init__(self, kind: TokenErrorKind, reason: str = "") -> None:
        self.kind = kind
        super().__init__(reason or kind.value)


class TokenService:
    """Issue and verify signed, time-limited bearer tokens.

    Usage:
        tokens = TokenService(settings.secret_key)
        token = tokens.issue(account.id)
        account_id = tokens.verify(token)   # raises TokenError
    """

    def __init__(
        self,
        secret_key: str,
        validity: timedelta = DEFAULT_VALIDITY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a signing secret")
        self._secret_key = secret_key
        self._validity = validity
        self._clock = clock

    def issue(self, subject_id: int) -> str:
        """Encode a signed JWT for the given account id."""
        # Whole seconds: the exp/iat claims are integers, so read() round-trips exactly.
        issued_at = self._clock().replace(microsecond=0)
        payload = {
            # jose requires sub to be a string
            "sub": str(subject_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._validity).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def read(self, token: str) -> SessionToken:
        """Verify a token and return its decoded contents.

        Raises TokenError with kind:
          MALFORMED         -- not a JWT, or required claims missing/invalid
          SIGNATURE_INVALID -- signed with another key or algorithm
          EXPIRED           -- signature valid but now >= exp
        """
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenError(TokenErrorKind.MALFORMED, str(exc)) from exc

        # Structure is known-good at this point, so any JWSError is a key or
        # algorithm mismatch. Claims were parsed above but are trusted only now.
        try:
            jws.verify(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWSError as exc:
            raise TokenError(TokenErrorKind.SIGNATURE_INVALID, str(exc)) from exc

        try:
            session = SessionToken(
                subject_id=int(claims["sub"]),
                issued_at=datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise TokenError(TokenErrorKind.MALFORMED, "invalid claims") from exc

        if session.is_expired(self._clock()):
            raise TokenError(TokenErrorKind.EXPIRED, "token has expired")
        return session

    def verify(self, token: str) -> int:
        """Return the account id carried by a valid token. Raises TokenError."""
        return self.read(token).subject_id
