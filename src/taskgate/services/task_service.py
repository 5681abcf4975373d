"""Task service — per-user CRUD, always scoped to the caller.

Learn: The service is built per request with the authenticated Principal,
and every statement it executes goes through the OwnershipFilter first:
- reads/updates/deletes: `scope()` adds `owner_id = principal.id` to the SQL
- creates: `stamp()` forces owner_id to the principal

So get/update/delete of someone else's task finds nothing and raises the
same NotFoundError as a task id that was never used.
"""

from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth.ownership import OwnershipFilter
from taskgate.auth.principal import Principal
from taskgate.db.models import Task, as_utc, utcnow
from taskgate.errors import NotFoundError

logger = structlog.get_logger()

SORT_COLUMNS = {
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "title": Task.title,
    "due_date": Task.due_date,
}
DEFAULT_SORT = "-created_at"

# Columns a client may change; due_date is the only one that can be cleared.
UPDATABLE_FIELDS = {"title", "description", "priority", "due_date", "completed"}
NULLABLE_FIELDS = {"due_date"}

task_ownership = OwnershipFilter(Task)


class TaskNotFoundError(NotFoundError):
    detail = "Task not found"


class TaskService:
    """Business logic for one principal's tasks."""

    def __init__(self, db: AsyncSession, principal: Principal):
        self.db = db
        self.principal = principal

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        title: str,
        description: str = "",
        priority: str = "medium",
        due_date: Optional[datetime] = None,
        completed: bool = False,
    ) -> Task:
        values = task_ownership.stamp(
            self.principal,
            {
                "title": title,
                "description": description,
                "priority": priority,
                "due_date": as_utc(due_date),
                "completed": completed,
            },
        )
        task = Task(**values)
        self.db.add(task)
        await self.db.commit()
        logger.info("task.created", task_id=task.id, owner_id=str(task.owner_id))
        return task

    # ─── Read ────────────────────────────────────────────

    async def get_task(self, task_id: int) -> Task:
        """Fetch one owned task. Raises TaskNotFoundError otherwise."""
        stmt = task_ownership.scope(
            self.principal, select(Task).where(Task.id == task_id)
        )
        result = await self.db.execute(stmt)
        task = result.scalars().first()
        if task is None:
            raise TaskNotFoundError()
        return task

    async def list_tasks(
        self,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
        sort: str = DEFAULT_SORT,
    ) -> list[Task]:
        """List the caller's tasks with optional filters.

        Learn: Query filters are applied conditionally — only when the
        caller provides them. `sort` is a column name, "-" prefixed for
        descending order. Ties are broken by id so ordering is stable.
        """
        descending = sort.startswith("-")
        column = SORT_COLUMNS.get(sort.lstrip("-"))
        if column is None:
            raise ValueError(f"Unknown sort field: {sort}")

        query = task_ownership.scope(self.principal, select(Task))
        if completed is not None:
            query = query.where(Task.completed == completed)
        if priority:
            query = query.where(Task.priority == priority)
        if descending:
            query = query.order_by(column.desc(), Task.id.desc())
        else:
            query = query.order_by(column.asc(), Task.id.asc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ─── Update ──────────────────────────────────────────

    async def update_task(self, task_id: int, changes: dict[str, Any]) -> Task:
        """Apply a partial update to an owned task."""
        task = await self.get_task(task_id)

        applied = {}
        for field, value in changes.items():
            if field not in UPDATABLE_FIELDS:
                continue
            if value is None and field not in NULLABLE_FIELDS:
                continue
            if field == "due_date":
                value = as_utc(value)
            setattr(task, field, value)
            applied[field] = value

        if applied:
            task.updated_at = utcnow()
            await self.db.commit()
            logger.info("task.updated", task_id=task.id, fields=sorted(applied))
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task_id: int) -> Task:
        """Delete an owned task and return it as it was."""
        task = await self.get_task(task_id)
        await self.db.delete(task)
        await self.db.commit()
        logger.info("task.deleted", task_id=task_id)
        return task
