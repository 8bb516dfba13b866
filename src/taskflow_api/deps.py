"""
Authentication for FastAPI routes.

All /api/* routes other than auth and health use get_current_user, which reads the bearer token
from the Authorization header and resolves it to the current state of the user in the db.
"""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.crud.auth import get_user_from_token
from taskflow_api.db import get_db
from taskflow_api.exceptions import AuthenticationError
from taskflow_api.models.users import UserDB

logger = logging.getLogger(__name__)

# auto_error=False so a missing token goes through our own AuthenticationError handler
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)], db: AsyncSession = Depends(get_db)
) -> UserDB:
    """
    Get current user from JWT Access token

    We should not be specific about why/if credentials are invalid.
    """
    if not token:
        raise AuthenticationError("Access token required")
    return await get_user_from_token(db=db, token=token)
