"""
api/routes/users.py -- Account registration and login endpoints.

Routes:
  POST /api/users/register  -- create an account; returns identity + token (201)
  POST /api/users/login     -- check credentials; returns identity + token (200)

Security:
  Both endpoints are public and rate-limited per client IP.
  authenticate_account() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login answers "no such account" and "wrong password" with the same 401
  status and message so the endpoint cannot be used to enumerate emails.
  Cache-Control: no-store on responses that carry a token.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.errors import internal_errors
from api.limiter import LOGIN_RATE_LIMIT, REGISTER_RATE_LIMIT, limiter
from api.models import AuthResponse, LoginRequest, RegisterRequest
from auth.models import Account
from auth.passwords import HashingError, authenticate_account, hash_password
from auth.store import AccountStore
from auth.tokens import TokenService
from core.errors import AuthError, ConflictError, ValidationError

logger = logging.getLogger("tasktracker.api")

router = APIRouter()

_INVALID_CREDENTIALS = "Invalid credentials."


def _token_response(account: Account, token: str, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse.from_account(account, token).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/users/register", response_model=AuthResponse, status_code=201)
@limiter.limit(REGISTER_RATE_LIMIT)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and return it with a bearer token.

    The existence check gives the friendly "already exists" answer; the UNIQUE
    constraint on email is what actually guarantees uniqueness when two
    registrations race.
    """
    if not (body.name and body.email and body.password):
        raise ValidationError("All fields are required.")

    account_store: AccountStore = request.app.state.account_store
    tokens: TokenService = request.app.state.tokens

    with internal_errors("Registration", HashingError):
        if account_store.get_by_email(body.email) is not None:
            raise ConflictError("User already exists.")
        password_hash = hash_password(body.password)
        try:
            account_id = account_store.create_account(
                Account(name=body.name, email=body.email, password_hash=password_hash)
            )
        except IntegrityError as exc:
            raise ConflictError("User already exists.") from exc

    account = Account(id=account_id, name=body.name, email=body.email)
    logger.info("Registered account %s", account_id)
    return _token_response(account, tokens.issue(account_id), status_code=201)


@router.post("/users/login", response_model=AuthResponse)
@limiter.limit(LOGIN_RATE_LIMIT)  # brute-force mitigation
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a fresh bearer token."""
    if not (body.email and body.password):
        raise ValidationError("Email and password are required.")

    account_store: AccountStore = request.app.state.account_store
    tokens: TokenService = request.app.state.tokens

    with internal_errors("Login", HashingError):
        account = authenticate_account(account_store, body.email, body.password)
    if account is None:
        logger.info("Failed login attempt from %s", request.client.host if request.client else "unknown")
        raise AuthError(_INVALID_CREDENTIALS)

    logger.info("Account %s logged in", account.id)
    return _token_response(account.public(), tokens.issue(account.id), status_code=200)
