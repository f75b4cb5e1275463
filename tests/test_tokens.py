"""Unit tests for auth/tokens.py -- TokenService issue/verify.

Covers:
- issue() then verify() recovers the subject id; read() exposes iat/exp
- 30-day default validity
- expiry is judged against the injected clock (EXPIRED kind)
- tampered payload and foreign key -> SIGNATURE_INVALID
- garbage and structurally bad tokens -> MALFORMED
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.tokens import DEFAULT_VALIDITY, TokenError, TokenErrorKind, TokenService

SECRET = "s" * 32
OTHER_SECRET = "o" * 32
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class _Clock:
    """Settable clock for deterministic expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock(T0)


@pytest.fixture
def service(clock: _Clock) -> TokenService:
    return TokenService(SECRET, clock=clock)


class TestIssueAndVerify:
    def test_round_trip_returns_subject(self, service: TokenService) -> None:
        token = service.issue(42)
        assert service.verify(token) == 42

    def test_read_exposes_timestamps(self, service: TokenService) -> None:
        session = service.read(service.issue(7))
        assert session.subject_id == 7
        assert session.issued_at == T0
        assert session.expires_at == T0 + timedelta(days=30)

    def test_default_validity_is_thirty_days(self) -> None:
        assert DEFAULT_VALIDITY == timedelta(days=30)

    def test_token_carries_only_standard_claims(self, service: TokenService) -> None:
        claims = jwt.get_unverified_claims(service.issue(5))
        assert set(claims) == {"sub", "iat", "exp"}
        assert claims["sub"] == "5"

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenService("")


class TestExpiry:
    def test_valid_until_just_before_expiry(self, service: TokenService, clock: _Clock) -> None:
        token = service.issue(1)
        clock.now = T0 + timedelta(days=30) - timedelta(seconds=1)
        assert service.verify(token) == 1

    def test_expired_at_expiry_instant(self, service: TokenService, clock: _Clock) -> None:
        token = service.issue(1)
        clock.now = T0 + timedelta(days=30)
        with pytest.raises(TokenError) as excinfo:
            service.verify(token)
        assert excinfo.value.kind is TokenErrorKind.EXPIRED

    def test_short_validity(self, clock: _Clock) -> None:
        service = TokenService(SECRET, validity=timedelta(minutes=5), clock=clock)
        token = service.issue(1)
        clock.now = T0 + timedelta(minutes=6)
        with pytest.raises(TokenError) as excinfo:
            service.verify(token)
        assert excinfo.value.kind is TokenErrorKind.EXPIRED


class TestSignature:
    def test_foreign_key_rejected(self, service: TokenService, clock: _Clock) -> None:
        forged = TokenService(OTHER_SECRET, clock=clock).issue(1)
        with pytest.raises(TokenError) as excinfo:
            service.verify(forged)
        assert excinfo.value.kind is TokenErrorKind.SIGNATURE_INVALID

    def test_tampered_payload_rejected(self, service: TokenService) -> None:
        """Swapping in another token's payload keeps the structure but breaks the signature."""
        header, _payload, signature = service.issue(1).split(".")
        _h, other_payload, _s = service.issue(2).split(".")
        with pytest.raises(TokenError) as excinfo:
            service.verify(f"{header}.{other_payload}.{signature}")
        assert excinfo.value.kind is TokenErrorKind.SIGNATURE_INVALID

    def test_unsigned_token_rejected(self, service: TokenService) -> None:
        header, payload, _signature = service.issue(1).split(".")
        with pytest.raises(TokenError) as excinfo:
            service.verify(f"{header}.{payload}.")
        assert excinfo.value.kind is TokenErrorKind.SIGNATURE_INVALID

    def test_bad_signature_wins_over_expiry(self, service: TokenService, clock: _Clock) -> None:
        """An expired forgery is reported as a forgery."""
        forged = TokenService(OTHER_SECRET, clock=clock).issue(1)
        clock.now = T0 + timedelta(days=365)
        with pytest.raises(TokenError) as excinfo:
            service.verify(forged)
        assert excinfo.value.kind is TokenErrorKind.SIGNATURE_INVALID


class TestMalformed:
    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "a.b"])
    def test_not_a_jwt(self, service: TokenService, token: str) -> None:
        with pytest.raises(TokenError) as excinfo:
            service.verify(token)
        assert excinfo.value.kind is TokenErrorKind.MALFORMED

    def test_missing_subject(self, service: TokenService) -> None:
        token = jwt.encode({"iat": int(T0.timestamp()), "exp": int(T0.timestamp()) + 60}, SECRET, algorithm="HS256")
        with pytest.raises(TokenError) as excinfo:
            service.verify(token)
        assert excinfo.value.kind is TokenErrorKind.MALFORMED

    def test_non_numeric_subject(self, service: TokenService) -> None:
        token = jwt.encode(
            {"sub": "ann", "iat": int(T0.timestamp()), "exp": int(T0.timestamp()) + 60},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(TokenError) as excinfo:
            service.verify(token)
        assert excinfo.value.kind is TokenErrorKind.MALFORMED
