"""
Pydantic schemas for project-related operations.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskflow_api.models.projects import DEFAULT_PROJECT_COLOR
from taskflow_api.schemas.tasks import TaskResponse

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    color: str = Field(DEFAULT_PROJECT_COLOR, pattern=HEX_COLOR_PATTERN)

    model_config = ConfigDict(str_strip_whitespace=True)


class ProjectUpdate(BaseModel):
    """Partial update of a project, only fields explicitly sent are applied."""

    name: str | None = Field(None, min_length=1, max_length=255)
    color: str | None = Field(None, pattern=HEX_COLOR_PATTERN)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("name", "color")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ProjectResponse(BaseModel):
    """Response schema, aka returned by API endpoints."""

    id: uuid.UUID
    name: str
    color: str
    created_at: datetime
    updated_at: datetime
    task_count: int = Field(0, description="Number of tasks in the project that are not in the trash")

    model_config = ConfigDict(from_attributes=True)


class ProjectDetailResponse(ProjectResponse):
    """A single project with its tasks that are not in the trash."""

    tasks: list[TaskResponse]


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]


class ProjectItemResponse(BaseModel):
    project: ProjectResponse
    message: str | None = None


class ProjectDetailItemResponse(BaseModel):
    project: ProjectDetailResponse
