"""
Authentication endpoints for registration, login (email + password or Google) and token verification.

All successful logins return a bearer access token, which the client sends in the Authorization header.
"""

import json
import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.api_config import settings
from taskflow_api.crud.auth import authenticate_user, resolve_oauth_user
from taskflow_api.crud.users import create_user
from taskflow_api.db import get_db
from taskflow_api.deps import get_current_user
from taskflow_api.exceptions import OAuthProviderError
from taskflow_api.models.users import UserDB
from taskflow_api.schemas.auth import AuthResponse, LoginRequest
from taskflow_api.schemas.users import UserCreate, UserItemResponse, UserResponse
from taskflow_api.security import create_access_token
from taskflow_api.services.google_oauth import GoogleOAuthClient, get_google_oauth_client

logger = logging.getLogger(__name__)

auth_router = APIRouter()

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_STATE_MAX_AGE_SECONDS = 600


def _auth_response(user: UserDB, message: str) -> AuthResponse:
    token_data = create_access_token(user_id=user.id, email=user.email)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=token_data.token,
        expires_at=token_data.expires_at,
        message=message,
    )


def _login_failed_redirect() -> RedirectResponse:
    response = RedirectResponse(
        url=f"{settings.api.frontend_url}/login?error=auth_failed", status_code=status.HTTP_302_FOUND
    )
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user with email + password, they are logged in straight away."""
    user = await create_user(db=db, user_data=user_data)
    return _auth_response(user, message="User registered successfully")


@auth_router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
async def login_endpoint(login_data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with email + password to get an access token."""
    user = await authenticate_user(db, email=login_data.email, password=login_data.password.get_secret_value())
    logger.info(f"User {user.email} logged in successfully.")
    return _auth_response(user, message="Login successful")


@auth_router.get("/google", status_code=status.HTTP_302_FOUND)
async def google_login_endpoint(oauth_client: GoogleOAuthClient = Depends(get_google_oauth_client)):
    """
    Start the Google login flow by redirecting to Google's consent page.

    A random state is stored in a short lived cookie and checked again in the callback.
    """
    state = secrets.token_urlsafe(32)
    response = RedirectResponse(url=oauth_client.get_authorization_url(state=state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        max_age=OAUTH_STATE_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.api.environment not in ["local_dev", "test"],
        samesite="lax",
    )
    return response


@auth_router.get("/google/callback", status_code=status.HTTP_302_FOUND)
async def google_callback_endpoint(
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
    oauth_state: str | None = Cookie(None),
    db: AsyncSession = Depends(get_db),
    oauth_client: GoogleOAuthClient = Depends(get_google_oauth_client),
):
    """
    Google redirects here after the consent page.

    On success the user is sent back to the frontend with their token and public user details
    in the query string, on any failure to the frontend's login page.
    """
    if error or not code:
        logger.info(f"Google login cancelled or failed at Google: {error}")
        return _login_failed_redirect()

    if not state or not oauth_state or not secrets.compare_digest(state, oauth_state):
        logger.warning("Google login callback with a missing or mismatched state")
        return _login_failed_redirect()

    try:
        profile = await oauth_client.exchange_code_for_profile(code=code)
    except OAuthProviderError as e:
        logger.warning(f"Google login failed: {e.message}")
        return _login_failed_redirect()

    user = await resolve_oauth_user(db=db, profile=profile)
    logger.info(f"User {user.email} logged in with Google.")

    token_data = create_access_token(user_id=user.id, email=user.email)
    query = urlencode(
        {
            "token": token_data.token,
            "user": json.dumps(UserResponse.model_validate(user).model_dump(mode="json")),
        }
    )
    response = RedirectResponse(url=f"{settings.api.frontend_url}/auth/callback?{query}", status_code=status.HTTP_302_FOUND)
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


@auth_router.get("/verify", response_model=UserItemResponse, status_code=status.HTTP_200_OK)
async def verify_endpoint(current_user: UserDB = Depends(get_current_user)):
    """Return the current state of the user the access token belongs to."""
    return UserItemResponse(user=UserResponse.model_validate(current_user))
