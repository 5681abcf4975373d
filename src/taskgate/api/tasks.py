"""Task API routes.

Learn: Every route here depends on get_current_user, and the resolved
Principal is passed explicitly into TaskService — which scopes every query
to that principal. Routes translate HTTP to service calls; a task that
isn't yours is a 404, same as one that doesn't exist.

Key patterns:
- POST for creation
- PUT and PATCH both do partial updates (only fields present in the body)
- Query params for filtering (completed, priority) and sorting
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.auth.dependencies import get_current_user
from taskgate.auth.principal import Principal
from taskgate.db.engine import get_db
from taskgate.schemas.task import (
    PRIORITY_PATTERN,
    SORT_PATTERN,
    TaskCreate,
    TaskDeleted,
    TaskRead,
    TaskUpdate,
)
from taskgate.services.task_service import DEFAULT_SORT, TaskService

router = APIRouter()


def _task_svc(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_user),
) -> TaskService:
    return TaskService(db, principal)


@router.get("/tasks", response_model=list[TaskRead])
async def list_tasks(
    completed: Optional[bool] = Query(None, description="Filter by completion"),
    priority: Optional[str] = Query(None, pattern=PRIORITY_PATTERN),
    sort: str = Query(DEFAULT_SORT, pattern=SORT_PATTERN),
    svc: TaskService = Depends(_task_svc),
):
    """List the current user's tasks."""
    return await svc.list_tasks(completed=completed, priority=priority, sort=sort)


@router.post("/tasks", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    svc: TaskService = Depends(_task_svc),
):
    """Create a task owned by the current user."""
    return await svc.create_task(
        title=body.title,
        description=body.description,
        priority=body.priority,
        due_date=body.due_date,
        completed=body.completed,
    )


@router.get("/tasks/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: int,
    svc: TaskService = Depends(_task_svc),
):
    """Get a single task by ID."""
    return await svc.get_task(task_id)


@router.api_route("/tasks/{task_id}", methods=["PUT", "PATCH"], response_model=TaskRead)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task."""
    return await svc.update_task(task_id, body.model_dump(exclude_unset=True))


@router.delete("/tasks/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: int,
    svc: TaskService = Depends(_task_svc),
):
    """Delete a task. Returns the deleted task."""
    task = await svc.delete_task(task_id)
    return TaskDeleted(task=TaskRead.model_validate(task))
