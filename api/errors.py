"""
api/errors.py -- Controller-boundary conversion of infrastructure failures.

Route handlers wrap their store and crypto calls in internal_errors(). A
SQLAlchemyError (or any extra exception type passed in) is logged with its
traceback and re-raised as InternalError, whose message is generic. AppError
subclasses raised inside the block (NotFoundError, ConflictError, ...) pass
through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from core.errors import InternalError

logger = logging.getLogger("tasktracker.api")


@contextmanager
def internal_errors(action: str, *extra: type[BaseException]) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, *extra) as exc:
        logger.exception("%s failed", action)
        raise InternalError() from exc
