"""
Pydantic schemas for user-related operations.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, SecretStr, field_validator

from taskflow_api.security import BCRYPT_MAX_PASSWORD_BYTES

PASSWORD_MIN_LENGTH = 6


def check_password_bytes(v: SecretStr) -> SecretStr:
    """A multibyte character counts once towards max_length but several times towards bcrypt's limit."""
    if len(v.get_secret_value().encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return v


class UserCreate(BaseModel):
    """Schema for registering with email + password."""

    email: EmailStr = Field(..., max_length=255)
    password: SecretStr = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=BCRYPT_MAX_PASSWORD_BYTES)
    name: str | None = Field(None, max_length=100)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v):
        return check_password_bytes(v)


class UserUpdate(BaseModel):
    """
    Schema for a user to update their own profile.

    Only fields explicitly sent by the client are applied (see crud.users.update_user_profile).
    """

    name: str | None = Field(None, min_length=1, max_length=100)
    avatar: HttpUrl | None = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("Name cannot be empty")
        return v


class UserPasswordUpdate(BaseModel):
    """Schema for a user to update their own password."""

    current_password: SecretStr = Field(..., min_length=1)
    new_password: SecretStr = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=BCRYPT_MAX_PASSWORD_BYTES)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, v):
        return check_password_bytes(v)


class UserResponse(BaseModel):
    """
    Public projection of a user, aka returned by API endpoints.

    Never add the password hash or google id here.
    """

    id: uuid.UUID
    email: EmailStr
    name: str
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserStats(BaseModel):
    pending_tasks: int
    completed_tasks: int
    projects: int
    trash_items: int


class UserProfileResponse(UserResponse):
    created_at: datetime
    stats: UserStats


class UserItemResponse(BaseModel):
    user: UserResponse
    message: str | None = None


class UserProfileItemResponse(BaseModel):
    user: UserProfileResponse


class MessageResponse(BaseModel):
    """Response for operations that have nothing to return but a confirmation."""

    message: str
