"""
tasks/store.py -- SQLAlchemy-backed persistence layer for task records.

Uses SQLAlchemy Core (not ORM) so the dataclass in tasks/models.py remains the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Ownership: the store does not decide who may see a task. find() takes the
owner as a required filter so a list can never be unscoped; single-record
access is checked by tasks/access.py before update_by_id/delete_by_id run.

Usage:
    store = TaskStore("sqlite:///:memory:")
    task_id = store.create_task(Task(title="buy milk", owner_id=1))
    store.find(owner_id=1)
    store.update_by_id(task_id, status="completed")
    store.delete_by_id(task_id)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from core.config import get_settings
from tasks.models import Task

# Fields a caller may change after creation. owner_id, id and timestamps are
# deliberately absent.
UPDATABLE_FIELDS = frozenset({"title", "description", "status", "priority", "due_date"})

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(100), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("priority", String(10), nullable=False, server_default="low"),
    Column("due_date", String(10)),  # YYYY-MM-DD
    Column("owner_id", Integer, nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode; set per-connection like auth/store.py."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_task(self, task: Task) -> int:
        """Insert a new task and return its assigned database ID."""
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    title=task.title,
                    description=task.description,
                    status=task.status,
                    priority=task.priority,
                    due_date=task.due_date,
                    owner_id=task.owner_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_id(self, task_id: int) -> Optional[Task]:
        """Fetch a single task by ID regardless of owner. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def find(self, owner_id: int, status: Optional[str] = None) -> list[Task]:
        """Return the owner's tasks, newest first, optionally filtered by status."""
        query = _tasks.select().where(_tasks.c.owner_id == owner_id)
        if status is not None:
            query = query.where(_tasks.c.status == status)
        # id breaks ties between tasks created within the same timestamp tick
        query = query.order_by(_tasks.c.created_at.desc(), _tasks.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_task(r) for r in rows]

    def update_by_id(self, task_id: int, **fields) -> Optional[Task]:
        """Apply field changes and return the updated task.

        Accepts any subset of UPDATABLE_FIELDS; anything else raises
        ValueError. Returns None if the task no longer exists (e.g. deleted
        by a concurrent request after the caller's ownership check).
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {sorted(unknown)!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update().where(_tasks.c.id == task_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(task_id)

    def delete_by_id(self, task_id: int) -> bool:
        """Permanently delete a task. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        status=row.status,
        priority=row.priority,
        due_date=row.due_date,
        owner_id=row.owner_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
