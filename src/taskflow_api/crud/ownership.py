"""
Single authorization gate for user owned entities.

Every read or mutation of a task or project goes through assert_owned, so that an entity
owned by another user is indistinguishable from one that does not exist.
"""

import uuid
from typing import Protocol, TypeVar

from taskflow_api.exceptions import NotFoundError


class OwnedEntity(Protocol):
    owner_id: uuid.UUID


OwnedT = TypeVar("OwnedT", bound=OwnedEntity)


def assert_owned(entity: OwnedT | None, actor_id: uuid.UUID, entity_name: str) -> OwnedT:
    """Return the entity if it exists and belongs to actor_id, else raise NotFoundError."""
    if entity is None or entity.owner_id != actor_id:
        raise NotFoundError(entity_name)
    return entity
