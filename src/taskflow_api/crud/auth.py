"""
Authentication-related CRUD operations.

Resolves local credentials, OAuth identities and access tokens to exactly one user in the db.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.users import get_user_by_email, get_user_by_google_id, get_user_by_id
from taskflow_api.exceptions import InvalidCredentialsError, PasswordLoginUnavailableError, UserNotFoundError
from taskflow_api.models.users import UserDB
from taskflow_api.schemas.auth import OAuthProfile
from taskflow_api.security import verify_access_token, verify_password

logger = logging.getLogger(__name__)


async def authenticate_user(db: AsyncSession, email: str, password: str) -> UserDB:
    """
    Authenticate user by email and password when logging in.

    Raises InvalidCredentialsError for an unknown email or wrong password (we do not say which),
    and PasswordLoginUnavailableError for accounts that were created through Google login.
    """
    user = await get_user_by_email(db, email.lower())

    if not user:
        raise InvalidCredentialsError()

    if not user.hashed_password:
        raise PasswordLoginUnavailableError()

    if not verify_password(plain_password=password, hashed_password=user.hashed_password):
        raise InvalidCredentialsError()

    return user


async def resolve_oauth_user(db: AsyncSession, profile: OAuthProfile) -> UserDB:
    """
    Find or create the single user for an external (OAuth) identity.

    Resolution order, first match wins:
    1. A user already linked to this external id -> refresh name, avatar and email from the profile.
    2. A user with the profile's email -> link the external id to that account (a password account
       keeps its password) and refresh name and avatar.
    3. Otherwise create a new user without a password.

    Matching the external id first means an email changed at the provider does not break the link,
    matching the email before creating means one person does not end up with two accounts.
    """
    user = await get_user_by_google_id(db=db, google_id=profile.external_id)
    if user:
        user.name = profile.display_name
        user.avatar = profile.avatar_url
        user.email = profile.email
        await db.commit()
        await db.refresh(user)
        return user

    user = await get_user_by_email(db=db, email=profile.email)
    if user:
        user.google_id = profile.external_id
        user.name = profile.display_name
        user.avatar = profile.avatar_url
        await db.commit()
        await db.refresh(user)
        logger.info(f"Linked Google account to existing user with email: {user.email}")
        return user

    user = UserDB(
        email=profile.email,
        name=profile.display_name,
        google_id=profile.external_id,
        avatar=profile.avatar_url,
        hashed_password=None,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info(f"New user created from Google login with email: {user.email}")
    return user


async def get_user_from_token(db: AsyncSession, token: str) -> UserDB:
    """
    Resolve an access token to the current state of its user.

    Only the user id is taken from the token, all other user details are re-fetched from the db.
    Raises TokenInvalidError for a bad/expired token and UserNotFoundError if the user no longer exists.
    """
    claim = verify_access_token(token)

    user = await get_user_by_id(db=db, id=claim.user_id)
    if not user:
        raise UserNotFoundError()
    return user
