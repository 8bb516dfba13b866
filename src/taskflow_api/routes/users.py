"""
Routes for a user to manage their own account.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.users import delete_user, get_user_profile_stats, update_user_password, update_user_profile
from taskflow_api.db import get_db
from taskflow_api.deps import get_current_user
from taskflow_api.models.users import UserDB
from taskflow_api.schemas.users import (
    MessageResponse,
    UserItemResponse,
    UserPasswordUpdate,
    UserProfileItemResponse,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
)

logger = logging.getLogger(__name__)

users_router = APIRouter()


@users_router.get("/profile", response_model=UserProfileItemResponse, status_code=status.HTTP_200_OK)
async def get_profile_endpoint(current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """The current user's profile with counts of their tasks and projects."""
    stats = await get_user_profile_stats(db=db, user_id=current_user.id)
    profile = UserProfileResponse(
        id=current_user.id,
        email=current_user.email,
        name=current_user.name,
        avatar=current_user.avatar,
        created_at=current_user.created_at,
        stats=stats,
    )
    return UserProfileItemResponse(user=profile)


@users_router.put("/profile", response_model=UserItemResponse, status_code=status.HTTP_200_OK)
async def update_profile_endpoint(
    user_data: UserUpdate, current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    user = await update_user_profile(db=db, user_data=user_data, user_id=current_user.id)
    return UserItemResponse(user=UserResponse.model_validate(user), message="Profile updated successfully")


@users_router.put("/password", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def update_password_endpoint(
    password_data: UserPasswordUpdate,
    current_user: UserDB = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await update_user_password(db=db, user_id=current_user.id, password_data=password_data)
    return MessageResponse(message="Password changed successfully")


@users_router.delete("/account", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def delete_account_endpoint(
    current_user: UserDB = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Permanently delete the current user's account with all their tasks and projects."""
    await delete_user(db=db, user_id=current_user.id)
    return MessageResponse(message="Account deleted successfully")
