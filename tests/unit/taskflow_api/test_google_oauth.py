"""
Unit tests for the Google OAuth adapter. No requests are sent to Google, httpx is given a mock transport.
"""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from pydantic import SecretStr

from taskflow_api.api_config import GoogleOAuthSettings
from taskflow_api.exceptions import OAuthProviderError
from taskflow_api.services import google_oauth
from taskflow_api.services.google_oauth import (
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleOAuthClient,
    normalize_google_profile,
)

USERINFO = {
    "sub": "1234567890",
    "email": "Alice@Example.com",
    "email_verified": True,
    "name": "Alice",
    "picture": "https://example.com/alice.png",
}


@pytest.fixture
def oauth_settings():
    return GoogleOAuthSettings(
        client_id="client-id",
        client_secret=SecretStr("client-secret"),
        callback_url="http://api.test/api/auth/google/callback",
    )


def mock_google(
    token_status: int = 200,
    userinfo_status: int = 200,
    userinfo: dict | None = None,
    token_body: bytes | None = None,
    userinfo_body: bytes | None = None,
):
    """Patch httpx.AsyncClient in the adapter so requests are answered by a fake Google."""
    real_async_client = httpx.AsyncClient
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if str(request.url) == GOOGLE_TOKEN_URL and token_body is not None:
            return httpx.Response(token_status, content=token_body)
        if str(request.url) == GOOGLE_USERINFO_URL and userinfo_body is not None:
            return httpx.Response(userinfo_status, content=userinfo_body)
        if str(request.url) == GOOGLE_TOKEN_URL:
            return httpx.Response(token_status, json={"access_token": "google-access-token"})
        if str(request.url) == GOOGLE_USERINFO_URL:
            return httpx.Response(userinfo_status, json=USERINFO if userinfo is None else userinfo)
        return httpx.Response(404)

    def client_factory(*args, **kwargs):
        return real_async_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    return patch.object(google_oauth.httpx, "AsyncClient", side_effect=client_factory), requests


def test_normalize_google_profile():
    profile = normalize_google_profile(USERINFO)

    assert profile.external_id == "1234567890"
    assert profile.email == "alice@example.com"
    assert profile.display_name == "Alice"
    assert profile.avatar_url == "https://example.com/alice.png"


def test_normalize_google_profile_without_name_or_picture():
    profile = normalize_google_profile({"sub": "1", "email": "bob@example.com", "email_verified": True})

    assert profile.display_name == "bob"
    assert profile.avatar_url is None


@pytest.mark.parametrize("missing", ["sub", "email"])
def test_normalize_google_profile_requires_id_and_email(missing):
    payload = {key: value for key, value in USERINFO.items() if key != missing}

    with pytest.raises(OAuthProviderError):
        normalize_google_profile(payload)


@pytest.mark.parametrize("email_verified", [False, "false", None])
def test_normalize_google_profile_requires_verified_email(email_verified):
    payload = {**USERINFO, "email_verified": email_verified}

    with pytest.raises(OAuthProviderError):
        normalize_google_profile(payload)


def test_normalize_google_profile_accepts_verified_flag_as_string():
    profile = normalize_google_profile({**USERINFO, "email_verified": "true"})

    assert profile.email == "alice@example.com"


def test_normalize_google_profile_with_invalid_email_raises_provider_error():
    with pytest.raises(OAuthProviderError):
        normalize_google_profile({**USERINFO, "email": "not-an-email"})


def test_authorization_url(oauth_settings):
    url = GoogleOAuthClient(oauth_settings).get_authorization_url(state="random-state")

    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://accounts.google.com/")
    assert query["client_id"] == ["client-id"]
    assert query["redirect_uri"] == ["http://api.test/api/auth/google/callback"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid email profile"]
    assert query["state"] == ["random-state"]


def test_not_configured_client_refuses_to_start(oauth_settings):
    oauth_settings.client_id = "NOT_SET"

    with pytest.raises(OAuthProviderError):
        GoogleOAuthClient(oauth_settings).get_authorization_url(state="random-state")


async def test_exchange_code_for_profile(oauth_settings):
    patcher, requests = mock_google()
    with patcher:
        profile = await GoogleOAuthClient(oauth_settings).exchange_code_for_profile(code="auth-code")

    assert profile.external_id == "1234567890"
    assert profile.email == "alice@example.com"

    token_request, userinfo_request = requests
    token_form = parse_qs(token_request.content.decode())
    assert token_form["code"] == ["auth-code"]
    assert token_form["client_secret"] == ["client-secret"]
    assert token_form["grant_type"] == ["authorization_code"]
    assert userinfo_request.headers["Authorization"] == "Bearer google-access-token"


@pytest.mark.parametrize("token_status,userinfo_status", [(400, 200), (200, 401), (500, 200)])
async def test_exchange_code_http_failure_raises(oauth_settings, token_status, userinfo_status):
    patcher, _ = mock_google(token_status=token_status, userinfo_status=userinfo_status)
    with patcher:
        with pytest.raises(OAuthProviderError):
            await GoogleOAuthClient(oauth_settings).exchange_code_for_profile(code="auth-code")


async def test_exchange_code_with_incomplete_profile_raises(oauth_settings):
    patcher, _ = mock_google(userinfo={"email": "no-id@example.com"})
    with patcher:
        with pytest.raises(OAuthProviderError):
            await GoogleOAuthClient(oauth_settings).exchange_code_for_profile(code="auth-code")


@pytest.mark.parametrize(
    "bodies",
    [
        {"token_body": b"<html>Service Unavailable</html>"},
        {"userinfo_body": b"not json"},
        {"userinfo_body": b'["a", "list"]'},
        {"token_body": b'"just a string"'},
    ],
)
async def test_exchange_code_with_malformed_response_raises(oauth_settings, bodies):
    patcher, _ = mock_google(**bodies)
    with patcher:
        with pytest.raises(OAuthProviderError):
            await GoogleOAuthClient(oauth_settings).exchange_code_for_profile(code="auth-code")


async def test_exchange_code_with_unverified_email_raises(oauth_settings):
    patcher, _ = mock_google(userinfo={**USERINFO, "email_verified": False})
    with patcher:
        with pytest.raises(OAuthProviderError):
            await GoogleOAuthClient(oauth_settings).exchange_code_for_profile(code="auth-code")
