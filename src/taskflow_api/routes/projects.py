"""
Routes for project management.

Deleting a project keeps its tasks, they are just no longer in a project.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.projects import (
    create_project,
    create_project_responses,
    delete_project,
    get_project_detail,
    get_project_with_task_count,
    get_user_projects,
    project_response_from_db,
    update_project,
)
from taskflow_api.db import get_db
from taskflow_api.deps import get_current_user
from taskflow_api.models.users import UserDB
from taskflow_api.schemas.projects import (
    ProjectCreate,
    ProjectDetailItemResponse,
    ProjectItemResponse,
    ProjectListResponse,
    ProjectUpdate,
)
from taskflow_api.schemas.users import MessageResponse

projects_router = APIRouter()


@projects_router.get("", response_model=ProjectListResponse, status_code=status.HTTP_200_OK)
async def get_user_projects_endpoint(
    current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    user_projects = await get_user_projects(db=db, owner_id=current_user.id)
    return ProjectListResponse(projects=create_project_responses(user_projects))


@projects_router.get("/{project_id}", response_model=ProjectDetailItemResponse, status_code=status.HTTP_200_OK)
async def get_project_endpoint(
    project_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    project = await get_project_detail(db=db, project_id=project_id, owner_id=current_user.id)
    return ProjectDetailItemResponse(project=project)


@projects_router.post("", response_model=ProjectItemResponse, status_code=status.HTTP_201_CREATED)
async def create_project_endpoint(
    proj_data: ProjectCreate, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    new_project = await create_project(db=db, owner_id=current_user.id, proj_data=proj_data)
    return ProjectItemResponse(
        project=project_response_from_db(new_project, task_count=0), message="Project created successfully"
    )


@projects_router.put("/{project_id}", response_model=ProjectItemResponse, status_code=status.HTTP_200_OK)
async def update_project_endpoint(
    project_id: uuid.UUID,
    proj_data: ProjectUpdate,
    current_user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await update_project(db=db, project_id=project_id, owner_id=current_user.id, proj_data=proj_data)
    project, task_count = await get_project_with_task_count(db=db, project_id=project_id, owner_id=current_user.id)
    return ProjectItemResponse(
        project=project_response_from_db(project, task_count), message="Project updated successfully"
    )


@projects_router.delete("/{project_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_project_endpoint(
    project_id: uuid.UUID, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    await delete_project(db=db, project_id=project_id, owner_id=current_user.id)
    return MessageResponse(message="Project deleted successfully")
