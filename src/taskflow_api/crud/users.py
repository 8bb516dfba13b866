"""
CRUD operations for users.
"""

import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.transaction import atomic
from taskflow_api.exceptions import NotFoundError, PasswordChangeError, UserRegistrationError
from taskflow_api.models import ProjectDB, TaskDB, UserDB
from taskflow_api.schemas.users import UserCreate, UserPasswordUpdate, UserStats, UserUpdate
from taskflow_api.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, id: uuid.UUID) -> UserDB | None:
    """Get user by ID."""
    return await db.get(entity=UserDB, ident=id)


async def get_user_by_id_or_raise(db: AsyncSession, id: uuid.UUID) -> UserDB:
    """Get user by ID, but raise NotFoundError if user not found."""
    user = await db.get(entity=UserDB, ident=id)
    if not user:
        raise NotFoundError("User")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> UserDB | None:
    """Get user by email. Emails are stored lowercase, so the lookup is too."""
    stmt = select(UserDB).where(UserDB.email == email.lower())
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_google_id(db: AsyncSession, google_id: str) -> UserDB | None:
    """Get user by their Google account id."""
    stmt = select(UserDB).where(UserDB.google_id == google_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, user_data: UserCreate) -> UserDB:
    """
    Register a new user with email + password.

    If no name is given, the part of the email before the "@" is used.
    """
    proposed_email = user_data.email.lower()
    current_user = await get_user_by_email(db=db, email=proposed_email)
    if current_user:
        raise UserRegistrationError(
            internal_logging_message=f"Attempt made to register new account with existing email: {proposed_email}"
        )

    user = UserDB(
        email=proposed_email,
        name=user_data.name or proposed_email.split("@")[0],
        hashed_password=get_password_hash(user_data.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"New user registered with email: {user.email}")
    return user


async def update_user_profile(db: AsyncSession, user_data: UserUpdate, user_id: uuid.UUID) -> UserDB:
    """Used by a regular user to update their own profile information."""
    user = await get_user_by_id_or_raise(db=db, id=user_id)

    update_data = user_data.model_dump(exclude_unset=True)
    if "avatar" in update_data and update_data["avatar"] is not None:
        update_data["avatar"] = str(update_data["avatar"])

    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user


async def update_user_password(db: AsyncSession, user_id: uuid.UUID, password_data: UserPasswordUpdate) -> UserDB:
    """
    Change the user's password, after checking their current one.

    Accounts created through Google login have no password to change.
    """
    user = await get_user_by_id_or_raise(db=db, id=user_id)

    if not user.hashed_password:
        raise PasswordChangeError("Cannot change password for OAuth accounts")

    if not verify_password(
        plain_password=password_data.current_password.get_secret_value(), hashed_password=user.hashed_password
    ):
        raise PasswordChangeError("Current password is incorrect")

    user.hashed_password = get_password_hash(password_data.new_password)
    await db.commit()
    await db.refresh(user)
    logger.info(f"Password changed for user id: {user.id}")
    return user


async def get_user_profile_stats(db: AsyncSession, user_id: uuid.UUID) -> UserStats:
    """
    Count the user's pending, completed and trashed tasks and their projects.

    All four counts are taken in a single statement, so they describe the same snapshot of the db.
    """

    def count_tasks(*conditions):
        return select(func.count(TaskDB.id)).where(TaskDB.owner_id == user_id, *conditions).scalar_subquery()

    stmt = select(
        count_tasks(TaskDB.is_complete.is_(False), TaskDB.is_deleted.is_(False)).label("pending_tasks"),
        count_tasks(TaskDB.is_complete.is_(True), TaskDB.is_deleted.is_(False)).label("completed_tasks"),
        select(func.count(ProjectDB.id)).where(ProjectDB.owner_id == user_id).scalar_subquery().label("projects"),
        count_tasks(TaskDB.is_deleted.is_(True)).label("trash_items"),
    )
    result = await db.execute(stmt)
    row = result.one()
    return UserStats(**row._mapping)


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    """
    Permanently delete a user together with all their tasks and projects.

    Everything is removed in one atomic unit.
    """
    user = await get_user_by_id_or_raise(db=db, id=user_id)

    async with atomic(db):
        await db.execute(delete(TaskDB).where(TaskDB.owner_id == user.id))
        await db.execute(delete(ProjectDB).where(ProjectDB.owner_id == user.id))
        await db.execute(delete(UserDB).where(UserDB.id == user.id))

    logger.info(f"User account deleted, user id: {user_id}")
