"""
tasks/models.py -- Domain dataclass for task records.

Pure data container with zero logic. Persistence lives in tasks/store.py,
the ownership rule in tasks/access.py.
"""

from dataclasses import dataclass
from typing import Optional

TASK_STATUSES = ("pending", "in-progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high")


@dataclass
class Task:
    """A unit of work owned by exactly one account.

    owner_id is assigned from the authenticated identity at creation and never
    changes afterwards -- the store has no way to update it.

    id is None before the record is written to the database.
    """

    title: str
    owner_id: int
    description: str = ""
    status: str = "pending"  # "pending" | "in-progress" | "completed"
    priority: str = "low"  # "low" | "medium" | "high"
    due_date: Optional[str] = None  # YYYY-MM-DD
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
