"""
Import all models here to ensure proper initialization order.

They are imported in dependency order to avoid circular import issues.
"""

from taskflow_api.models.base import Base, BaseDBModel
from taskflow_api.models.projects import ProjectDB
from taskflow_api.models.tasks import PRIORITY_RANK, TaskDB, TaskPriority
from taskflow_api.models.users import UserDB

__all__ = [
    "Base",
    "BaseDBModel",
    "UserDB",
    "ProjectDB",
    "TaskDB",
    "TaskPriority",
    "PRIORITY_RANK",
]
