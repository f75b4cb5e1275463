"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper (same as tasks/store.py).
AccountStore is the repository; _row_to_account is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is enforced by a UNIQUE column, not by the
  check-then-insert in the register route. Emails are lower-cased on the way
  in and on lookup, so the constraint is effectively case-insensitive.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import Account
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(20), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore()                                # DATABASE_URL
        store = AccountStore("postgresql://user:pw@host/db")  # explicit
        account_id = store.create_account(Account(name="Ann", email="ann@x.com", password_hash=h))
        account = store.get_by_email("ANN@x.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Route handlers run in a thread pool; the same pooled connection
            # may be used from different threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        The register route catches it as a signal that a concurrent request
        won the race between its existence check and this insert.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.insert().values(
                    name=account.name,
                    email=normalize_email(account.email),
                    password_hash=account.password_hash,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == normalize_email(email))).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
