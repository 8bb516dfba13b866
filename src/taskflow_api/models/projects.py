"""
Project DB Model.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskflow_api.models.base import BaseDBModel

if TYPE_CHECKING:
    from taskflow_api.models.tasks import TaskDB
    from taskflow_api.models.users import UserDB

DEFAULT_PROJECT_COLOR = "#3B82F6"


class ProjectDB(BaseDBModel):
    """
    DB Model for a project.

    id, created_at and updated_at are inherited from BaseDBModel.
    """

    __tablename__ = "project"

    name: Mapped[str] = mapped_column(String(255))
    color: Mapped[str] = mapped_column(String(7), default=DEFAULT_PROJECT_COLOR)

    # ondelete=cascade ensures if the owner is deleted, their projects are also deleted.
    owner_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)

    owner: Mapped["UserDB"] = relationship("UserDB", back_populates="projects")
    # tasks are never deleted with their project, see crud.projects.delete_project
    tasks: Mapped[list["TaskDB"]] = relationship("TaskDB", back_populates="project", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<ProjectDB id={self.id}, name={self.name}, owner_id={self.owner_id}>"
