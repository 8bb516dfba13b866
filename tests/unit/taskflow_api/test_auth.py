"""
Unit tests for resolving logins (email + password, Google and access tokens) to users.
"""

import pytest
from sqlalchemy import func, select

from taskflow_api.crud.auth import authenticate_user, get_user_from_token, resolve_oauth_user
from taskflow_api.crud.users import delete_user
from taskflow_api.exceptions import (
    InvalidCredentialsError,
    PasswordLoginUnavailableError,
    TokenInvalidError,
    UserNotFoundError,
    UserRegistrationError,
)
from taskflow_api.models import UserDB
from taskflow_api.schemas.auth import OAuthProfile
from taskflow_api.security import create_access_token

DEFAULT_PASSWORD = "password123"


def google_profile(**overrides) -> OAuthProfile:
    values = {
        "external_id": "google-123",
        "email": "alice@example.com",
        "display_name": "Alice Google",
        "avatar_url": "https://example.com/alice.png",
    }
    values.update(overrides)
    return OAuthProfile(**values)


async def count_users(db_session) -> int:
    result = await db_session.execute(select(func.count(UserDB.id)))
    return result.scalar_one()


async def test_register_uses_email_local_part_as_default_name(make_user):
    user = await make_user(email="Bob.Smith@Example.com")

    assert user.email == "bob.smith@example.com"
    assert user.name == "bob.smith"
    assert user.hashed_password and user.hashed_password != DEFAULT_PASSWORD


async def test_register_with_taken_email_fails(make_user):
    await make_user(email="alice@example.com")

    with pytest.raises(UserRegistrationError):
        await make_user(email="ALICE@example.com")


async def test_login_with_correct_password(db_session, make_user):
    user = await make_user()

    logged_in = await authenticate_user(db_session, email="Alice@Example.com", password=DEFAULT_PASSWORD)

    assert logged_in.id == user.id


async def test_login_with_wrong_password_fails(db_session, make_user):
    await make_user()

    with pytest.raises(InvalidCredentialsError):
        await authenticate_user(db_session, email="alice@example.com", password="not-the-password")


async def test_login_with_unknown_email_fails_the_same_way(db_session, make_user):
    """Unknown email and wrong password can not be told apart by the caller."""
    await make_user()

    with pytest.raises(InvalidCredentialsError) as exc_info:
        await authenticate_user(db_session, email="nobody@example.com", password=DEFAULT_PASSWORD)

    assert exc_info.value.message == InvalidCredentialsError().message


async def test_password_login_for_google_only_account_fails(db_session):
    await resolve_oauth_user(db_session, google_profile())

    with pytest.raises(PasswordLoginUnavailableError):
        await authenticate_user(db_session, email="alice@example.com", password=DEFAULT_PASSWORD)


async def test_oauth_login_creates_user_without_password(db_session):
    user = await resolve_oauth_user(db_session, google_profile())

    assert user.google_id == "google-123"
    assert user.email == "alice@example.com"
    assert user.name == "Alice Google"
    assert user.avatar == "https://example.com/alice.png"
    assert user.hashed_password is None


async def test_repeated_oauth_login_is_idempotent(db_session):
    first = await resolve_oauth_user(db_session, google_profile())
    second = await resolve_oauth_user(db_session, google_profile())

    assert first.id == second.id
    assert await count_users(db_session) == 1


async def test_oauth_login_refreshes_profile_details(db_session):
    first = await resolve_oauth_user(db_session, google_profile())

    updated = await resolve_oauth_user(
        db_session,
        google_profile(email="alice.new@example.com", display_name="Alice Renamed", avatar_url=None),
    )

    assert updated.id == first.id
    assert updated.email == "alice.new@example.com"
    assert updated.name == "Alice Renamed"
    assert updated.avatar is None


async def test_oauth_login_links_existing_password_account(db_session, make_user):
    """An existing account with the same email is linked, not duplicated, and keeps its password."""
    user = await make_user(email="alice@example.com", name="Alice")
    original_hash = user.hashed_password

    linked = await resolve_oauth_user(db_session, google_profile(email="ALICE@example.com"))

    assert linked.id == user.id
    assert linked.google_id == "google-123"
    assert linked.name == "Alice Google"
    assert linked.hashed_password == original_hash
    assert await count_users(db_session) == 1

    logged_in = await authenticate_user(db_session, email="alice@example.com", password=DEFAULT_PASSWORD)
    assert logged_in.id == user.id


async def test_token_resolves_to_current_user_state(db_session, make_user):
    user = await make_user()
    token = create_access_token(user_id=user.id, email=user.email).token

    user.name = "Changed After Login"
    await db_session.commit()

    resolved = await get_user_from_token(db_session, token)
    assert resolved.id == user.id
    assert resolved.name == "Changed After Login"


async def test_token_for_deleted_user_fails(db_session, make_user):
    user = await make_user()
    token = create_access_token(user_id=user.id, email=user.email).token

    await delete_user(db_session, user_id=user.id)

    with pytest.raises(UserNotFoundError):
        await get_user_from_token(db_session, token)


async def test_garbage_token_fails(db_session):
    with pytest.raises(TokenInvalidError):
        await get_user_from_token(db_session, "garbage")
