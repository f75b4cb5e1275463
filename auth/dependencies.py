"""
auth/dependencies.py -- FastAPI Depends() helper for authentication.

get_current_account() is the authentication gate for every task route:

  no Authorization header              -> 401
  scheme other than Bearer / no token  -> 401
  token fails TokenService.verify()    -> 401 (malformed, bad signature, expired)
  account no longer exists             -> 401
  otherwise                            -> Account (hash stripped), also on
                                          request.state.account

Every rejection raises the same AuthError, so the client cannot tell which
precondition failed. The reason is logged server-side. Raising (rather than
writing a response and returning) guarantees the route handler never runs
after a rejection.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from auth.models import Account
from auth.store import AccountStore
from auth.tokens import TokenError, TokenService
from core.errors import AuthError, InternalError

logger = logging.getLogger("tasktracker.auth")


def _bearer_token(request: Request) -> str | None:
    """Return the credential from 'Authorization: Bearer <token>', or None."""
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def get_current_account(request: Request) -> Account:
    """Require a valid bearer token. Raises AuthError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(account: Account = Depends(get_current_account)): ...
    """
    token = _bearer_token(request)
    if token is None:
        logger.info("Rejected %s %s: missing or malformed Authorization header", request.method, request.url.path)
        raise AuthError()

    tokens: TokenService = request.app.state.tokens
    try:
        account_id = tokens.verify(token)
    except TokenError as exc:
        logger.info("Rejected %s %s: token %s", request.method, request.url.path, exc.kind.value)
        raise AuthError() from exc

    account_store: AccountStore = request.app.state.account_store
    try:
        account = account_store.get_by_id(account_id)
    except SQLAlchemyError as exc:
        logger.exception("Account lookup failed during authentication")
        raise InternalError() from exc
    if account is None:
        logger.info("Rejected %s %s: account %s no longer exists", request.method, request.url.path, account_id)
        raise AuthError()

    identity = account.public()
    request.state.account = identity
    return identity
