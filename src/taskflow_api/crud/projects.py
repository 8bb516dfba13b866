"""
CRUD operations for projects.
"""

import logging
import uuid

from sqlalchemy import ScalarSelect, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.ownership import assert_owned
from taskflow_api.crud.tasks import list_tasks
from taskflow_api.crud.transaction import atomic
from taskflow_api.exceptions import NotFoundError
from taskflow_api.models import ProjectDB, TaskDB
from taskflow_api.schemas.projects import ProjectCreate, ProjectDetailResponse, ProjectResponse, ProjectUpdate
from taskflow_api.schemas.tasks import TaskFilterCriteria, TaskResponse

logger = logging.getLogger(__name__)


def _active_task_count() -> ScalarSelect[int]:
    """Number of tasks in a project that are not in the trash, correlated to the outer ProjectDB query."""
    return (
        select(func.count(TaskDB.id))
        .where(TaskDB.project_id == ProjectDB.id, TaskDB.is_deleted.is_(False))
        .correlate(ProjectDB)
        .scalar_subquery()
    )


async def create_project(db: AsyncSession, owner_id: uuid.UUID, proj_data: ProjectCreate) -> ProjectDB:
    """Create a new project"""
    project = ProjectDB(**proj_data.model_dump(), owner_id=owner_id)
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


async def get_project(db: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID) -> ProjectDB:
    """Get a project owned by owner_id, raises NotFoundError if it does not exist or is not theirs."""
    project = await db.get(entity=ProjectDB, ident=project_id)
    return assert_owned(project, actor_id=owner_id, entity_name="Project")


async def get_user_projects(db: AsyncSession, owner_id: uuid.UUID) -> list[tuple[ProjectDB, int]]:
    """Get all of a user's projects, newest first, each with its number of active tasks."""
    stmt = (
        select(ProjectDB, _active_task_count().label("task_count"))
        .where(ProjectDB.owner_id == owner_id)
        .order_by(ProjectDB.created_at.desc(), ProjectDB.id.asc())
    )
    result = await db.execute(stmt)
    return [(row[0], row[1]) for row in result.all()]


async def get_project_with_task_count(
    db: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID
) -> tuple[ProjectDB, int]:
    """Get a project owned by owner_id with its number of active tasks."""
    stmt = (
        select(ProjectDB, _active_task_count().label("task_count"))
        .where(ProjectDB.id == project_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    row = result.first()
    if row is None:
        raise NotFoundError("Project")

    project = assert_owned(row[0], actor_id=owner_id, entity_name="Project")
    return project, row[1]


def project_response_from_db(project: ProjectDB, task_count: int) -> ProjectResponse:
    """Helper function to convert a ProjectDB and its task count to a ProjectResponse."""
    return ProjectResponse(
        id=project.id,
        name=project.name,
        color=project.color,
        created_at=project.created_at,
        updated_at=project.updated_at,
        task_count=task_count,
    )


def create_project_responses(user_projects: list[tuple[ProjectDB, int]]) -> list[ProjectResponse]:
    """Helper to create project responses from list of (ProjectDB, task count) tuples."""
    return [project_response_from_db(project, task_count) for project, task_count in user_projects]


async def update_project(
    db: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID, proj_data: ProjectUpdate
) -> ProjectDB:
    """Apply a partial update to a project. Fields that were not sent are left untouched."""
    project = await get_project(db=db, project_id=project_id, owner_id=owner_id)

    update_data = proj_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(project, field, value)

    await db.commit()
    await db.refresh(project)
    return project


async def delete_project(db: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID) -> None:
    """
    Delete a project. Its tasks are kept, but removed from the project.

    Clearing the tasks' project_id and deleting the project happen in one atomic unit,
    so no task is ever seen pointing at a deleted project.
    """
    project = await get_project(db=db, project_id=project_id, owner_id=owner_id)

    async with atomic(db):
        await db.execute(update(TaskDB).where(TaskDB.project_id == project.id).values(project_id=None))
        await db.execute(delete(ProjectDB).where(ProjectDB.id == project.id))

    logger.info(f"Project {project_id} deleted by user id: {owner_id}")


async def get_project_detail(db: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID) -> ProjectDetailResponse:
    """A project with its tasks that are not in the trash, in the same order as the task list."""
    project, task_count = await get_project_with_task_count(db=db, project_id=project_id, owner_id=owner_id)
    tasks = await list_tasks(db=db, owner_id=owner_id, criteria=TaskFilterCriteria(project_id=project.id))

    return ProjectDetailResponse(
        **project_response_from_db(project, task_count).model_dump(),
        tasks=[TaskResponse.model_validate(task) for task in tasks],
    )
