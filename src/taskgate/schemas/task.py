"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task
- TaskUpdate: what you PUT/PATCH to modify a task (all optional)
- TaskRead: what the API returns

None of the input schemas has an owner field. Unknown keys (like an
"owner_id" sent by a client) are ignored, and the service stamps the
owner from the authenticated principal anyway.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

PRIORITY_PATTERN = r"^(low|medium|high)$"
SORT_PATTERN = r"^-?(created_at|updated_at|title|due_date)$"


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    priority: str = Field(default="medium", pattern=PRIORITY_PATTERN)
    due_date: Optional[datetime] = None
    completed: bool = False

    model_config = {"str_strip_whitespace": True}


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[str] = Field(None, pattern=PRIORITY_PATTERN)
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

    model_config = {"str_strip_whitespace": True}


class TaskRead(BaseModel):
    id: int
    owner_id: uuid.UUID
    title: str
    description: str
    priority: str
    due_date: Optional[datetime]
    completed: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskDeleted(BaseModel):
    deleted: bool = True
    task: TaskRead
