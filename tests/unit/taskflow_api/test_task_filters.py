"""
Unit tests for the task filter engine (listing tasks by view, status, priority, project and search).
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from taskflow_api.crud.tasks import list_tasks
from taskflow_api.exceptions import InputValidationError
from taskflow_api.models import TaskPriority
from taskflow_api.schemas.tasks import TaskFilterCriteria, TaskStatusFilter, TaskView
from taskflow_api.services.task_filters import build_task_filter_statement, start_of_day

NOW = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


def titles(tasks) -> list[str]:
    return [task.title for task in tasks]


@pytest.fixture
async def owner(make_user):
    return await make_user(email="owner@example.com")


def test_start_of_day_is_utc_midnight():
    assert start_of_day(NOW) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert start_of_day(datetime(2024, 1, 1, 23, 59)) == datetime(2024, 1, 1, tzinfo=timezone.utc)


async def test_upcoming_view_orders_by_due_date(db_session, owner, make_task):
    jan_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    jan_3 = datetime(2024, 1, 3, tzinfo=timezone.utc)
    await make_task(owner, title="due 3rd", due_date=jan_3, priority=TaskPriority.LOW)
    await make_task(owner, title="no due date", due_date=None, priority=TaskPriority.HIGH)
    await make_task(owner, title="due 1st", due_date=jan_1, priority=TaskPriority.HIGH)

    upcoming = await list_tasks(db_session, owner.id, TaskFilterCriteria(view=TaskView.UPCOMING), now=NOW)
    assert titles(upcoming) == ["due 1st", "due 3rd"]

    all_active = await list_tasks(db_session, owner.id, TaskFilterCriteria(), now=NOW)
    assert titles(all_active) == ["due 1st", "due 3rd", "no due date"]


async def test_order_ties_broken_by_priority_then_newest(db_session, owner, make_task):
    due = datetime(2024, 1, 2, tzinfo=timezone.utc)
    await make_task(owner, title="low", due_date=due, priority=TaskPriority.LOW)
    older = datetime(2023, 1, 1, tzinfo=timezone.utc)
    newer = datetime(2023, 6, 1, tzinfo=timezone.utc)
    await make_task(owner, title="high old", due_date=due, priority=TaskPriority.HIGH, created_at=older)
    await make_task(owner, title="high new", due_date=due, priority=TaskPriority.HIGH, created_at=newer)
    await make_task(owner, title="medium", due_date=due, priority=TaskPriority.MEDIUM)

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(), now=NOW)

    assert titles(tasks) == ["high new", "high old", "medium", "low"]


async def test_order_is_stable_across_calls(db_session, owner, make_task):
    for i in range(5):
        await make_task(owner, title=f"same {i}")

    first = await list_tasks(db_session, owner.id, TaskFilterCriteria(), now=NOW)
    second = await list_tasks(db_session, owner.id, TaskFilterCriteria(), now=NOW)

    assert [task.id for task in first] == [task.id for task in second]


async def test_today_view_excludes_tomorrow_and_trash(db_session, owner, make_task):
    today = start_of_day(NOW)
    await make_task(owner, title="due today", due_date=today + timedelta(hours=17))
    await make_task(owner, title="due at midnight", due_date=today)
    await make_task(owner, title="due tomorrow", due_date=today + timedelta(days=1))
    await make_task(owner, title="due yesterday", due_date=today - timedelta(minutes=1))
    await make_task(owner, title="deleted but due today", due_date=today + timedelta(hours=1), is_deleted=True)

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(view=TaskView.TODAY), now=NOW)

    assert sorted(titles(tasks)) == ["due at midnight", "due today"]


async def test_completed_and_trash_views(db_session, owner, make_task):
    await make_task(owner, title="open")
    await make_task(owner, title="done", is_complete=True)
    await make_task(owner, title="done and deleted", is_complete=True, is_deleted=True)
    await make_task(owner, title="open and deleted", is_deleted=True)

    completed = await list_tasks(db_session, owner.id, TaskFilterCriteria(view=TaskView.COMPLETED), now=NOW)
    assert titles(completed) == ["done"]

    trash = await list_tasks(db_session, owner.id, TaskFilterCriteria(view=TaskView.TRASH), now=NOW)
    assert sorted(titles(trash)) == ["done and deleted", "open and deleted"]

    default = await list_tasks(db_session, owner.id, TaskFilterCriteria(), now=NOW)
    assert sorted(titles(default)) == ["done", "open"]


async def test_status_is_applied_on_top_of_any_view(db_session, owner, make_task):
    await make_task(owner, title="open")
    await make_task(owner, title="done", is_complete=True)
    await make_task(owner, title="open and deleted", is_deleted=True)

    incomplete = await list_tasks(
        db_session, owner.id, TaskFilterCriteria(status=TaskStatusFilter.INCOMPLETE), now=NOW
    )
    assert titles(incomplete) == ["open"]

    all_status = await list_tasks(db_session, owner.id, TaskFilterCriteria(status=TaskStatusFilter.ALL), now=NOW)
    assert sorted(titles(all_status)) == ["done", "open"]

    incomplete_in_trash = await list_tasks(
        db_session, owner.id, TaskFilterCriteria(view=TaskView.TRASH, status=TaskStatusFilter.INCOMPLETE), now=NOW
    )
    assert titles(incomplete_in_trash) == ["open and deleted"]

    contradictory = await list_tasks(
        db_session, owner.id, TaskFilterCriteria(view=TaskView.COMPLETED, status=TaskStatusFilter.INCOMPLETE), now=NOW
    )
    assert contradictory == []


async def test_priority_and_project_filters(db_session, owner, make_task, make_project):
    project = await make_project(owner, name="Work", color="#10B981")
    await make_task(owner, title="work high", priority=TaskPriority.HIGH, project=project)
    await make_task(owner, title="work low", priority=TaskPriority.LOW, project=project)
    await make_task(owner, title="loose high", priority=TaskPriority.HIGH)

    high = await list_tasks(db_session, owner.id, TaskFilterCriteria(priority=TaskPriority.HIGH), now=NOW)
    assert sorted(titles(high)) == ["loose high", "work high"]

    in_project = await list_tasks(db_session, owner.id, TaskFilterCriteria(project_id=project.id), now=NOW)
    assert sorted(titles(in_project)) == ["work high", "work low"]
    assert all(task.project.name == "Work" and task.project.color == "#10B981" for task in in_project)


async def test_task_without_project_has_no_project_summary(db_session, owner, make_task):
    await make_task(owner, title="loose")

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(), now=NOW)

    assert tasks[0].project is None


async def test_search_matches_title_or_description_case_insensitive(db_session, owner, make_task):
    await make_task(owner, title="Buy MILK")
    await make_task(owner, title="Groceries", description="eggs and milk")
    await make_task(owner, title="Dentist", description="routine checkup")

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(search="milk"), now=NOW)
    assert sorted(titles(tasks)) == ["Buy MILK", "Groceries"]

    everything = await list_tasks(db_session, owner.id, TaskFilterCriteria(search="   "), now=NOW)
    assert len(everything) == 3


async def test_search_wildcards_are_matched_literally(db_session, owner, make_task):
    await make_task(owner, title="100% done")
    await make_task(owner, title="1000 things")

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(search="0%"), now=NOW)

    assert titles(tasks) == ["100% done"]


async def test_other_users_tasks_are_never_listed(db_session, owner, make_user, make_task):
    other = await make_user(email="other@example.com")
    await make_task(owner, title="mine")
    await make_task(other, title="theirs")

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(search="theirs"), now=NOW)
    assert tasks == []

    tasks = await list_tasks(db_session, owner.id, TaskFilterCriteria(view=TaskView.TRASH), now=NOW)
    assert tasks == []


def test_unvalidated_criteria_are_rejected():
    """Criteria built without validation can not smuggle in unknown values."""
    criteria = TaskFilterCriteria.model_construct(view="everything")

    with pytest.raises(InputValidationError) as exc_info:
        build_task_filter_statement(owner_id=uuid.uuid4(), criteria=criteria, now=NOW)

    assert exc_info.value.errors[0]["field"] == "view"
