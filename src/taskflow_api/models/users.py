"""
User DB Model.
"""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskflow_api.models.base import BaseDBModel

if TYPE_CHECKING:
    from taskflow_api.models.projects import ProjectDB
    from taskflow_api.models.tasks import TaskDB


class UserDB(BaseDBModel):
    """
    DB Model for a user.

    id, created_at and updated_at are inherited from BaseDBModel.

    An account has a password, a google_id or both. Accounts created through Google login have no password.
    """

    __tablename__ = "user"

    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), index=True, unique=True)  # always stored lowercase
    hashed_password: Mapped[str | None] = mapped_column(String(128), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(255), index=True, unique=True, nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    projects: Mapped[list["ProjectDB"]] = relationship("ProjectDB", back_populates="owner", passive_deletes=True)
    tasks: Mapped[list["TaskDB"]] = relationship("TaskDB", back_populates="owner", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<UserDB id={self.id}, name={self.name}, email={self.email}>"
