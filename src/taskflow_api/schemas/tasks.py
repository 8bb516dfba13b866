"""
Pydantic schemas for task-related operations, including the criteria of the task filter engine.
"""

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskflow_api.models.tasks import TaskPriority


class TaskView(StrEnum):
    """
    Named base scopes for listing tasks. No view means all active (not deleted) tasks.

    - TODAY: active tasks due today.
    - UPCOMING: active tasks due today or later.
    - COMPLETED: active tasks marked complete.
    - TRASH: soft deleted tasks only.
    """

    TODAY = "today"
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    TRASH = "trash"


class TaskStatusFilter(StrEnum):
    ALL = "all"
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


class TaskFilterCriteria(BaseModel):
    """Everything a caller can filter the task list by. All fields are optional and ANDed together."""

    view: TaskView | None = None
    status: TaskStatusFilter | None = None
    priority: TaskPriority | None = None
    project_id: uuid.UUID | None = None
    search: str | None = None

    model_config = ConfigDict(str_strip_whitespace=True)


def _as_utc(v: datetime | None) -> datetime | None:
    """Naive datetimes from clients are taken to be UTC."""
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    due_date: datetime | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: uuid.UUID | None = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("due_date")
    @classmethod
    def due_date_as_utc(cls, v):
        return _as_utc(v)


class TaskUpdate(BaseModel):
    """
    Partial update of a task.

    Only fields explicitly sent are applied: a field that is not sent is left untouched,
    while e.g. "project_id": null explicitly removes the task from its project.
    """

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    due_date: datetime | None = None
    priority: TaskPriority | None = None
    is_complete: bool | None = None
    project_id: uuid.UUID | None = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("title", "priority", "is_complete")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("due_date")
    @classmethod
    def due_date_as_utc(cls, v):
        return _as_utc(v)


class ProjectSummary(BaseModel):
    """Shallow summary of the project a task belongs to."""

    id: uuid.UUID
    name: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(BaseModel):
    """Response schema, aka returned by API endpoints."""

    id: uuid.UUID
    title: str
    description: str | None
    due_date: datetime | None
    priority: TaskPriority
    is_complete: bool
    is_deleted: bool
    deleted_at: datetime | None
    project_id: uuid.UUID | None
    project: ProjectSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]


class TaskItemResponse(BaseModel):
    task: TaskResponse
    message: str | None = None
