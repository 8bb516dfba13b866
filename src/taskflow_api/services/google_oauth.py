"""
Google OAuth 2.0 (authorization code flow) adapter.

Only this module knows Google's endpoints and field names, everything else works with OAuthProfile.
"""

import logging
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from taskflow_api.api_config import GoogleOAuthSettings, settings
from taskflow_api.exceptions import OAuthProviderError
from taskflow_api.schemas.auth import OAuthProfile

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"


def normalize_google_profile(payload: dict) -> OAuthProfile:
    """
    Convert Google's userinfo response to an OAuthProfile.

    sub and a verified email are required. Name falls back to the local part of the email, picture is optional.
    Only a verified email may be used to link the Google identity to an existing account.
    """
    external_id = payload.get("sub")
    email = payload.get("email")
    if not external_id or not email:
        raise OAuthProviderError("Google profile is missing the account id or email")

    if payload.get("email_verified") not in (True, "true"):
        raise OAuthProviderError(f"Google account email is not verified: {email}")

    try:
        return OAuthProfile(
            external_id=str(external_id),
            email=email,
            display_name=payload.get("name") or str(email).split("@")[0],
            avatar_url=payload.get("picture") or None,
        )
    except ValidationError as e:
        raise OAuthProviderError(f"Google returned an invalid profile: {e.error_count()} invalid field(s)") from e


class GoogleOAuthClient:
    """Talks to Google to start the login flow and to turn the returned code into a profile."""

    def __init__(self, oauth_settings: GoogleOAuthSettings | None = None, timeout: float = 10.0):
        self.oauth_settings = oauth_settings or settings.google
        self.timeout = timeout

    def _ensure_configured(self) -> None:
        if not self.oauth_settings.is_configured:
            raise OAuthProviderError("Google login is not configured on this server")

    def get_authorization_url(self, state: str) -> str:
        """URL of Google's consent page, Google redirects back to the callback url with a code and this state."""
        self._ensure_configured()
        params = {
            "client_id": self.oauth_settings.client_id,
            "redirect_uri": self.oauth_settings.callback_url,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code_for_profile(self, code: str) -> OAuthProfile:
        """Exchange the authorization code for an access token, then fetch and normalize the user's profile."""
        self._ensure_configured()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token_response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.oauth_settings.client_id,
                        "client_secret": self.oauth_settings.client_secret.get_secret_value(),
                        "redirect_uri": self.oauth_settings.callback_url,
                        "grant_type": "authorization_code",
                    },
                )
                token_response.raise_for_status()
                token_payload = token_response.json()
                access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
                if not access_token:
                    raise OAuthProviderError("Google did not return an access token")

                userinfo_response = await client.get(
                    GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
                )
                userinfo_response.raise_for_status()
                payload = userinfo_response.json()
        # ValueError covers a body that is not JSON
        except (httpx.HTTPError, ValueError) as err:
            logger.warning(f"Google OAuth request failed: {err}")
            raise OAuthProviderError() from err

        if not isinstance(payload, dict):
            raise OAuthProviderError("Google returned an invalid profile")
        return normalize_google_profile(payload)


def get_google_oauth_client() -> GoogleOAuthClient:
    """Dependency for the Google OAuth client, can be overridden in tests."""
    return GoogleOAuthClient()
