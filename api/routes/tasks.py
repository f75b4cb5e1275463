"""
api/routes/tasks.py -- Task CRUD routes. Every route requires a bearer token.

Routes:
  GET    /tasks             -- list the caller's tasks (optionally ?status=)
  POST   /tasks             -- create a task owned by the caller
  GET    /tasks/{task_id}   -- fetch one task (owner only)
  PUT    /tasks/{task_id}   -- partial update (owner only)
  DELETE /tasks/{task_id}   -- hard delete (owner only)

Ownership:
  Single-task routes go through tasks.access.require_owned_task() before any
  read or write: 404 if the task does not exist, 403 if it belongs to someone
  else. The list route is scoped in the store query instead, so it has no
  403 path -- another user's task simply never appears.
  The owner of a new task is always the authenticated caller; the request
  body has no way to set it.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from api.errors import internal_errors
from api.models import (
    TaskCreate,
    TaskDeletedResponse,
    TaskListResponse,
    TaskResponse,
    TaskStatusEnum,
    TaskUpdate,
)
from auth.dependencies import get_current_account
from auth.models import Account
from core.errors import NotFoundError, ValidationError
from tasks.access import require_owned_task
from tasks.models import Task
from tasks.store import TaskStore

logger = logging.getLogger("tasktracker.tasks")

router = APIRouter()


def _store(request: Request) -> TaskStore:
    return request.app.state.task_store


# ---------------------------------------------------------------------------
# GET /tasks -- owner-scoped list
# ---------------------------------------------------------------------------


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    request: Request,
    status: Optional[TaskStatusEnum] = None,
    account: Account = Depends(get_current_account),
) -> TaskListResponse:
    """Return the caller's tasks, newest first."""
    with internal_errors("Listing tasks"):
        tasks = _store(request).find(owner_id=account.id, status=status.value if status else None)
    return TaskListResponse(tasks=[TaskResponse.from_task(t) for t in tasks])


# ---------------------------------------------------------------------------
# POST /tasks -- create
# ---------------------------------------------------------------------------


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    account: Account = Depends(get_current_account),
) -> TaskResponse:
    """Create a task owned by the authenticated caller."""
    if not body.title:
        raise ValidationError("Title is required.")

    store = _store(request)
    task = Task(
        title=body.title,
        description=body.description,
        status=body.status.value,
        priority=body.priority.value,
        due_date=body.due_date.isoformat() if body.due_date else None,
        owner_id=account.id,
    )
    with internal_errors("Creating task"):
        task_id = store.create_task(task)
        created = store.get_by_id(task_id)
    if created is None:
        # Deleted between insert and read-back.
        raise NotFoundError("Task not found.")
    logger.info("Account %s created task %s", account.id, task_id)
    return TaskResponse.from_task(created)


# ---------------------------------------------------------------------------
# GET /tasks/{task_id} -- single task
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    request: Request,
    task_id: int,
    account: Account = Depends(get_current_account),
) -> TaskResponse:
    """Return one task. 404 if missing, 403 if owned by another account."""
    with internal_errors("Fetching task"):
        task = require_owned_task(_store(request), task_id, account.id)
    return TaskResponse.from_task(task)


# ---------------------------------------------------------------------------
# PUT /tasks/{task_id} -- partial update
# ---------------------------------------------------------------------------


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: int,
    body: TaskUpdate,
    account: Account = Depends(get_current_account),
) -> TaskResponse:
    """Apply the fields present in the body to the caller's task.

    Enumerated fields are re-validated by TaskUpdate before anything is
    written. If the task is deleted between the ownership check and the
    write, the result is 404.
    """
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update.")
    for key in ("status", "priority"):
        if key in updates:
            updates[key] = updates[key].value
    if "due_date" in updates and updates["due_date"] is not None:
        updates["due_date"] = updates["due_date"].isoformat()

    store = _store(request)
    with internal_errors("Updating task"):
        require_owned_task(store, task_id, account.id)
        updated = store.update_by_id(task_id, **updates)
    if updated is None:
        raise NotFoundError("Task not found.")
    logger.info("Account %s updated task %s (%s)", account.id, task_id, ", ".join(sorted(updates)))
    return TaskResponse.from_task(updated)


# ---------------------------------------------------------------------------
# DELETE /tasks/{task_id} -- hard delete
# ---------------------------------------------------------------------------


@router.delete("/tasks/{task_id}", response_model=TaskDeletedResponse)
def delete_task(
    request: Request,
    task_id: int,
    account: Account = Depends(get_current_account),
) -> TaskDeletedResponse:
    """Permanently delete the caller's task and return the removed record."""
    store = _store(request)
    with internal_errors("Deleting task"):
        task = require_owned_task(store, task_id, account.id)
        deleted = store.delete_by_id(task_id)
    if not deleted:
        raise NotFoundError("Task not found.")
    logger.info("Account %s deleted task %s", account.id, task_id)
    return TaskDeletedResponse(message="Task deleted.", task=TaskResponse.from_task(task))
