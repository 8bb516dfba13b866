"""
Schemas for login, registration responses and OAuth identities.
"""

from pydantic import BaseModel, EmailStr, Field, SecretStr, field_validator

from taskflow_api.schemas.users import UserResponse


class LoginRequest(BaseModel):
    """Request model for email + password login."""

    email: EmailStr
    password: SecretStr = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v


class AuthResponse(BaseModel):
    """Response model for register and login endpoints."""

    user: UserResponse
    access_token: str = Field(..., description="Bearer access token for authentication")
    token_type: str = "bearer"
    expires_at: int = Field(..., description="UNIX timestamp the access token expires at")
    message: str | None = None


class OAuthProfile(BaseModel):
    """
    Provider independent profile of an external identity.

    Created by a provider specific adapter (e.g. services.google_oauth),
    the identity resolution in crud.auth only ever sees this shape.
    """

    external_id: str = Field(..., min_length=1)
    email: EmailStr
    display_name: str
    avatar_url: str | None = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower() if v else v
