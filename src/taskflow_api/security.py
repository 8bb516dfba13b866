"""
Security utilities for handling passwords and JSON Web Tokens (JWTs).

Passwords are hashed with bcrypt through pwdlib, using a fixed cost factor (12 by default).

Follows setup from official full stack template: https://github.com/fastapi/full-stack-fastapi-template/blob/master/backend/app/core/security.py
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any

import jwt
from pwdlib import PasswordHash
from pwdlib.hashers.bcrypt import BcryptHasher
from pydantic import SecretStr

from taskflow_api.api_config import settings
from taskflow_api.exceptions import TokenInvalidError

# bcrypt refuses longer passwords, counted in utf-8 bytes not characters
BCRYPT_MAX_PASSWORD_BYTES = 72

password_hash = PasswordHash(hashers=[BcryptHasher(rounds=settings.passwords.hash_rounds)])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    An empty hash is malformed input, not a failed verification,
    so callers must check for accounts without a password before calling this.
    A password too long to ever have been hashed does not match any hash.
    """
    if not hashed_password:
        raise ValueError("Cannot verify a password against an empty hash")
    if len(plain_password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: SecretStr | str) -> str:
    if isinstance(password, SecretStr):
        password = password.get_secret_value()
    return password_hash.hash(password)


class TokenType(StrEnum):
    """Types of JWT tokens issued by the API."""

    ACCESS = "access_token"


@dataclass
class TokenData:
    """Returned when creating a JWT."""

    token: str
    expires_at: int


@dataclass
class IdentityClaim:
    """Returned after verifying and decoding an access token."""

    user_id: uuid.UUID
    email: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(user_id: uuid.UUID | Any, email: str, expires_delta: timedelta | None = None) -> TokenData:
    """
    Create a signed access token for a resolved identity.

    The token embeds the user id (as "sub") and email. Only the id is trusted when validating,
    current user details are always re-fetched from the db.
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.jwt.access_token_expires_seconds)

    issued_at = datetime.now(timezone.utc)
    expire = issued_at + expires_delta

    to_encode = {
        "exp": expire,
        "iat": issued_at,
        "jti": str(uuid.uuid4()),
        "sub": str(user_id),
        "email": email,
        "type": TokenType.ACCESS.value,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt.secret_key.get_secret_value(), algorithm=settings.jwt.algorithm)
    return TokenData(token=encoded_jwt, expires_at=int(expire.timestamp()))


def verify_access_token(token: str) -> IdentityClaim:
    """
    Verify and decode an access token.

    Raises TokenInvalidError for a bad signature, a malformed or expired token, or missing claims.
    We do not pass any more detail than that back to the caller.

    Expiration time is automatically verified in jwt.decode() -> raises jwt.ExpiredSignatureError
    """
    try:
        payload = jwt.decode(
            jwt=token,
            key=settings.jwt.secret_key.get_secret_value(),
            algorithms=[settings.jwt.algorithm],
            options={"require": ["exp", "iat", "sub"]},
        )
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError) as e:
        raise TokenInvalidError() from e

    if payload.get("type") != TokenType.ACCESS:
        raise TokenInvalidError()

    if not all(payload.get(field) for field in ["sub", "email", "jti"]):
        raise TokenInvalidError()

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError as e:
        raise TokenInvalidError() from e

    return IdentityClaim(
        user_id=user_id,
        email=payload["email"],
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
