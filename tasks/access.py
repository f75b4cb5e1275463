"""
tasks/access.py -- The ownership rule for single-task operations.

Get-by-id, update and delete all resolve the task and then call
require_owned_task(). Keeping the three-way branch in one place means no
handler can forget the check or get the order wrong (404 before 403, and
nothing touches the store on behalf of a non-owner).

Listing does not come through here. It is scoped by the store query itself
(TaskStore.find(owner_id=...)), so there is no record to deny.
"""

import enum
import logging
from typing import Optional

from core.errors import ForbiddenError, NotFoundError
from tasks.models import Task
from tasks.store import TaskStore

logger = logging.getLogger("tasktracker.tasks")


class Access(enum.Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def check_access(task: Optional[Task], account_id: int) -> Access:
    """Decide whether account_id may act on task."""
    if task is None:
        return Access.NOT_FOUND
    if task.owner_id != account_id:
        return Access.FORBIDDEN
    return Access.ALLOWED


def require_owned_task(store: TaskStore, task_id: int, account_id: int) -> Task:
    """Fetch a task and return it only if account_id owns it.

    Raises NotFoundError (404) if the task does not exist, ForbiddenError
    (403) if it belongs to someone else.
    """
    task = store.get_by_id(task_id)
    access = check_access(task, account_id)
    if access is Access.NOT_FOUND:
        raise NotFoundError("Task not found.")
    if access is Access.FORBIDDEN:
        logger.warning("Account %s denied access to task %s", account_id, task_id)
        raise ForbiddenError()
    return task
