"""
Routes for task management, including the trash (soft delete, restore, permanent delete).

All routes act on the current user's tasks only, another user's task is reported as not found.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.tasks import (
    create_task,
    get_task,
    list_tasks,
    purge_task,
    restore_task,
    soft_delete_task,
    toggle_task_completion,
    update_task,
)
from taskflow_api.db import get_db
from taskflow_api.deps import get_current_user
from taskflow_api.models.tasks import TaskPriority
from taskflow_api.models.users import UserDB
from taskflow_api.schemas.tasks import (
    TaskCreate,
    TaskFilterCriteria,
    TaskItemResponse,
    TaskListResponse,
    TaskResponse,
    TaskStatusFilter,
    TaskUpdate,
    TaskView,
)
from taskflow_api.schemas.users import MessageResponse

logger = logging.getLogger(__name__)

tasks_router = APIRouter()


@tasks_router.get("", response_model=TaskListResponse, status_code=status.HTTP_200_OK)
async def list_tasks_endpoint(
    view: TaskView | None = Query(None),
    task_status: TaskStatusFilter | None = Query(None, alias="status"),
    priority: TaskPriority | None = Query(None),
    project_id: uuid.UUID | None = Query(None),
    project_id_camel: uuid.UUID | None = Query(None, alias="projectId", include_in_schema=False),
    search: str | None = Query(None, max_length=500),
    current_user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's tasks, filtered by view, status, priority, project and search term."""
    criteria = TaskFilterCriteria(
        view=view,
        status=task_status,
        priority=priority,
        project_id=project_id or project_id_camel,
        search=search,
    )
    tasks = await list_tasks(db=db, owner_id=current_user.id, criteria=criteria)
    return TaskListResponse(tasks=[TaskResponse.model_validate(task) for task in tasks])


@tasks_router.get("/{task_id}", response_model=TaskItemResponse, status_code=status.HTTP_200_OK)
async def get_task_endpoint(
    task_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    task = await get_task(db=db, task_id=task_id, owner_id=current_user.id)
    return TaskItemResponse(task=TaskResponse.model_validate(task))


@tasks_router.post("", response_model=TaskItemResponse, status_code=status.HTTP_201_CREATED)
async def create_task_endpoint(
    task_data: TaskCreate, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    task = await create_task(db=db, owner_id=current_user.id, task_data=task_data)
    return TaskItemResponse(task=TaskResponse.model_validate(task), message="Task created successfully")


@tasks_router.put("/{task_id}", response_model=TaskItemResponse, status_code=status.HTTP_200_OK)
async def update_task_endpoint(
    task_id: uuid.UUID,
    task_data: TaskUpdate,
    current_user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update, only the fields sent in the request body are changed."""
    task = await update_task(db=db, task_id=task_id, owner_id=current_user.id, task_data=task_data)
    return TaskItemResponse(task=TaskResponse.model_validate(task), message="Task updated successfully")


@tasks_router.patch("/{task_id}/toggle", response_model=TaskItemResponse, status_code=status.HTTP_200_OK)
async def toggle_task_endpoint(
    task_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    task = await toggle_task_completion(db=db, task_id=task_id, owner_id=current_user.id)
    return TaskItemResponse(
        task=TaskResponse.model_validate(task),
        message=f"Task marked as {'complete' if task.is_complete else 'incomplete'}",
    )


@tasks_router.delete("/{task_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_task_endpoint(
    task_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Move a task to the trash, it can be restored later."""
    await soft_delete_task(db=db, task_id=task_id, owner_id=current_user.id)
    return MessageResponse(message="Task moved to trash")


@tasks_router.patch("/{task_id}/restore", response_model=TaskItemResponse, status_code=status.HTTP_200_OK)
async def restore_task_endpoint(
    task_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    task = await restore_task(db=db, task_id=task_id, owner_id=current_user.id)
    return TaskItemResponse(task=TaskResponse.model_validate(task), message="Task restored successfully")


@tasks_router.delete("/{task_id}/permanent", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def purge_task_endpoint(
    task_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Permanently delete a task that is already in the trash."""
    await purge_task(db=db, task_id=task_id, owner_id=current_user.id)
    return MessageResponse(message="Task permanently deleted")
