"""
Task filter engine.

Translates TaskFilterCriteria (view, status, priority, project, search) into a single select statement
over one user's tasks, with a fixed ordering. The statement is built here and executed in crud.tasks.list_tasks.

How the filters compose (all ANDed):
- owner_id always matches the acting user, no criteria can widen this.
- view picks the base scope (see view_scope). No view means active (not deleted) tasks.
- status narrows to complete / incomplete tasks, "all" or no status adds nothing.
  It is applied on top of any view, so e.g. view=trash + status=incomplete gives the incomplete tasks in the trash,
  and view=completed + status=incomplete is always empty.
- priority and project_id are exact matches. Project ownership is not re-checked here,
  it was checked when the task was assigned to the project.
- search is a case insensitive substring match on the title OR the description.

Ordering: due date ascending (tasks without a due date last), then priority HIGH > MEDIUM > LOW,
then newest created first, then id so that the order is fully deterministic.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TypeVar

from sqlalchemy import ColumnElement, Select, case, or_, select
from sqlalchemy.orm import selectinload

from taskflow_api.exceptions import InputValidationError
from taskflow_api.models.tasks import PRIORITY_RANK, TaskDB, TaskPriority
from taskflow_api.schemas.tasks import TaskFilterCriteria, TaskStatusFilter, TaskView

EnumT = TypeVar("EnumT", bound=Enum)

LIKE_ESCAPE_CHAR = "\\"


def start_of_day(now: datetime) -> datetime:
    """Midnight (UTC) of the day that now falls on."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def view_scope(view: TaskView | None, now: datetime) -> list[ColumnElement[bool]]:
    """
    Base scope of a view, evaluated before all other filters.

    - today: not deleted, due in [start of today, start of tomorrow)
    - upcoming: not deleted, due at or after the start of today (no upper bound)
    - completed: not deleted and complete
    - trash: deleted only, completion and due date are irrelevant
    - no view: not deleted
    """
    today = start_of_day(now)
    tomorrow = today + timedelta(days=1)

    if view == TaskView.TODAY:
        return [TaskDB.is_deleted.is_(False), TaskDB.due_date >= today, TaskDB.due_date < tomorrow]
    if view == TaskView.UPCOMING:
        return [TaskDB.is_deleted.is_(False), TaskDB.due_date >= today]
    if view == TaskView.COMPLETED:
        return [TaskDB.is_complete.is_(True), TaskDB.is_deleted.is_(False)]
    if view == TaskView.TRASH:
        return [TaskDB.is_deleted.is_(True)]
    return [TaskDB.is_deleted.is_(False)]


def priority_rank() -> ColumnElement[int]:
    """Numeric rank of a task's priority, higher is more important."""
    return case(*[(TaskDB.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()], else_=0)


def task_ordering() -> list:
    """Fixed sort order used everywhere a list of tasks is returned."""
    return [
        TaskDB.due_date.asc().nulls_last(),
        priority_rank().desc(),
        TaskDB.created_at.desc(),
        TaskDB.id.asc(),
    ]


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the search term is matched literally."""
    return (
        value.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", f"{LIKE_ESCAPE_CHAR}%")
        .replace("_", f"{LIKE_ESCAPE_CHAR}_")
    )


def _coerce_enum(enum_cls: type[EnumT], value, field: str) -> EnumT | None:
    """
    Criteria should arrive validated, but raw strings (e.g. from model_construct) are checked again here
    so an unknown value can never silently widen the result.
    """
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InputValidationError([{"field": field, "message": f"Must be one of: {allowed}"}]) from None


def _coerce_uuid(value, field: str) -> uuid.UUID | None:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InputValidationError([{"field": field, "message": "Must be a valid UUID"}]) from None


def build_task_filter_statement(
    owner_id: uuid.UUID, criteria: TaskFilterCriteria, now: datetime | None = None
) -> Select[tuple[TaskDB]]:
    """
    Build the select statement for a user's tasks matching the criteria, in the fixed order.

    now is the reference time for the today/upcoming views, defaults to the current time.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    view = _coerce_enum(TaskView, criteria.view, "view")
    status = _coerce_enum(TaskStatusFilter, criteria.status, "status")
    priority = _coerce_enum(TaskPriority, criteria.priority, "priority")
    project_id = _coerce_uuid(criteria.project_id, "projectId")

    stmt = select(TaskDB).where(TaskDB.owner_id == owner_id).where(*view_scope(view, now))

    if status == TaskStatusFilter.COMPLETE:
        stmt = stmt.where(TaskDB.is_complete.is_(True))
    elif status == TaskStatusFilter.INCOMPLETE:
        stmt = stmt.where(TaskDB.is_complete.is_(False))

    if priority is not None:
        stmt = stmt.where(TaskDB.priority == priority)

    if project_id is not None:
        stmt = stmt.where(TaskDB.project_id == project_id)

    search = (criteria.search or "").strip()
    if search:
        pattern = f"%{_escape_like(search)}%"
        stmt = stmt.where(
            or_(
                TaskDB.title.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                TaskDB.description.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
            )
        )

    return stmt.options(selectinload(TaskDB.project)).order_by(*task_ordering())
