"""
CRUD operations for tasks, including the task lifecycle.

A task is either active (complete or not) or in the trash (soft deleted):
- toggle completion: only on active tasks, a no-op for tasks in the trash.
- soft delete: active -> trash, stamps deleted_at, all other fields are kept for a restore.
- restore: trash -> active, completion is kept as it was before the delete.
- purge: trash -> permanently removed.
Restore and purge are only allowed for tasks in the trash (NotInTrashError otherwise).

Every operation first checks the task belongs to the acting user via assert_owned.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskflow_api.crud.ownership import assert_owned
from taskflow_api.exceptions import InputValidationError, InvalidReferenceError, NotInTrashError
from taskflow_api.models import ProjectDB, TaskDB
from taskflow_api.schemas.tasks import TaskCreate, TaskFilterCriteria, TaskUpdate
from taskflow_api.services.task_filters import build_task_filter_statement

logger = logging.getLogger(__name__)


async def list_tasks(
    db: AsyncSession, owner_id: uuid.UUID, criteria: TaskFilterCriteria, now: datetime | None = None
) -> list[TaskDB]:
    """List a user's tasks matching the criteria. See services.task_filters for the filter and order rules."""
    stmt = build_task_filter_statement(owner_id=owner_id, criteria=criteria, now=now)
    result = await db.execute(stmt.execution_options(populate_existing=True))
    return list(result.scalars().all())


async def _load_task(db: AsyncSession, task_id: uuid.UUID) -> TaskDB | None:
    """
    Load a task with its project summary, overwriting any stale state in the session.
    (e.g. server side updated_at after a commit or the project after it was changed)
    """
    stmt = (
        select(TaskDB)
        .where(TaskDB.id == task_id)
        .options(selectinload(TaskDB.project))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_task(db: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID) -> TaskDB:
    """Get a task owned by owner_id, raises NotFoundError if it does not exist or is not theirs."""
    task = await _load_task(db=db, task_id=task_id)
    return assert_owned(task, actor_id=owner_id, entity_name="Task")


async def _validate_project_reference(db: AsyncSession, project_id: uuid.UUID, owner_id: uuid.UUID) -> None:
    """A task can only be put in a project owned by the same user."""
    project = await db.get(entity=ProjectDB, ident=project_id)
    if project is None or project.owner_id != owner_id:
        raise InvalidReferenceError()


def _clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise InputValidationError([{"field": "title", "message": "Title is required"}])
    return title


async def create_task(db: AsyncSession, owner_id: uuid.UUID, task_data: TaskCreate) -> TaskDB:
    """Create a new task for owner_id, optionally in one of their projects."""
    title = _clean_title(task_data.title)

    if task_data.project_id is not None:
        await _validate_project_reference(db=db, project_id=task_data.project_id, owner_id=owner_id)

    task = TaskDB(
        title=title,
        description=task_data.description,
        due_date=task_data.due_date,
        priority=task_data.priority,
        project_id=task_data.project_id,
        owner_id=owner_id,
    )
    db.add(task)
    await db.commit()
    return await get_task(db=db, task_id=task.id, owner_id=owner_id)


async def update_task(db: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID, task_data: TaskUpdate) -> TaskDB:
    """
    Apply a partial update to a task. Fields that were not sent are left untouched.

    Moving the task to another project re-checks that project belongs to the same user,
    removing it from its project (project_id=None) is always allowed.
    """
    task = await get_task(db=db, task_id=task_id, owner_id=owner_id)

    update_data = task_data.model_dump(exclude_unset=True)

    if "title" in update_data:
        update_data["title"] = _clean_title(update_data["title"])

    if update_data.get("project_id") is not None:
        await _validate_project_reference(db=db, project_id=update_data["project_id"], owner_id=owner_id)

    for field, value in update_data.items():
        setattr(task, field, value)

    await db.commit()
    return await get_task(db=db, task_id=task_id, owner_id=owner_id)


async def toggle_task_completion(db: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID) -> TaskDB:
    """Flip a task between complete and incomplete. Tasks in the trash are returned unchanged."""
    task = await get_task(db=db, task_id=task_id, owner_id=owner_id)

    if task.is_deleted:
        return task

    task.is_complete = not task.is_complete
    await db.commit()
    return await get_task(db=db, task_id=task_id, owner_id=owner_id)


async def soft_delete_task(db: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID) -> TaskDB:
    """Move a task to the trash. Deleting a task already in the trash keeps its original deleted_at."""
    task = await get_task(db=db, task_id=task_id, owner_id=owner_id)

    if task.is_deleted:
        return task

    task.is_deleted = True
    task.deleted_at = datetime.now(timezone.utc)
    await db.commit()
    return await get_task(db=db, task_id=task_id, owner_id=owner_id)


async def restore_task(db: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID) -> TaskDB:
    """Take a task back out of the trash, raises NotInTrashError if it is not in the trash."""
    task = await get_task(db=db, task_id=task_id, owner_id=owner_id)

    if not task.is_deleted:
        raise NotInTrashError()

    task.is_deleted = False
    task.deleted_at = None
    await db.commit()
    return await get_task(db=db, task_id=task_id, owner_id=owner_id)


async def purge_task(db: AsyncSession, task_id: uuid.UUID, owner_id: uuid.UUID) -> None:
    """Permanently delete a task, only allowed for tasks already in the trash."""
    task = await get_task(db=db, task_id=task_id, owner_id=owner_id)

    if not task.is_deleted:
        raise NotInTrashError()

    await db.delete(task)
    await db.commit()
    logger.info(f"Task {task_id} permanently deleted by user id: {owner_id}")
