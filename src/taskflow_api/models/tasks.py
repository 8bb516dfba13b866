"""
Task DB Model.
"""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskflow_api.models.base import BaseDBModel

if TYPE_CHECKING:
    from taskflow_api.models.projects import ProjectDB
    from taskflow_api.models.users import UserDB


class TaskPriority(StrEnum):
    """Priority of a task. Ordering between levels is defined by PRIORITY_RANK, not by the string values."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}


class TaskDB(BaseDBModel):
    """
    DB Model for a task.

    id, created_at and updated_at are inherited from BaseDBModel.

    Soft deleted tasks ("in the trash") have is_deleted=True and deleted_at set,
    active tasks have is_deleted=False and deleted_at=None. The two are always written together.
    """

    __tablename__ = "task"

    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    priority: Mapped[TaskPriority] = mapped_column(default=TaskPriority.MEDIUM, index=True)
    is_complete: Mapped[bool] = mapped_column(default=False, index=True)
    is_deleted: Mapped[bool] = mapped_column(default=False, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # set null (not cascade) so deleting a project never deletes its tasks.
    project_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("project.id", ondelete="SET NULL"), index=True, nullable=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)

    owner: Mapped["UserDB"] = relationship("UserDB", back_populates="tasks")
    project: Mapped[Optional["ProjectDB"]] = relationship("ProjectDB", back_populates="tasks")

    def __repr__(self) -> str:
        return f"<TaskDB id={self.id}, title={self.title[:30]}, is_complete={self.is_complete}, is_deleted={self.is_deleted}>"
