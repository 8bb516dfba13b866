"""
Config for the TaskFlow API.

This module creates a single instance of the Settings class,
which other modules can import directly to access configuration settings.

All settings are defined by environment variables (e.g. set in a docker compose file or the deployment).
"""

import os
from dataclasses import dataclass, field

from pydantic import SecretStr


@dataclass
class APISettings:
    """API configuration settings."""

    environment: str = os.getenv("TASKFLOW_ENV", "NOT_SET")
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    cors_origins: list[str] = field(init=False)
    demo_user_email: str = os.getenv("DEMO_USER_EMAIL", "NOT_SET")
    demo_user_password: SecretStr = SecretStr(os.getenv("DEMO_USER_PASSWORD", "NOT_SET"))

    def __post_init__(self):
        origins = os.getenv("CORS_ORIGINS", "")
        self.cors_origins = [origin.strip() for origin in origins.split(",") if origin.strip()] or [
            self.frontend_url
        ]


@dataclass
class DBSettings:
    """Database configuration settings."""

    url: SecretStr = SecretStr(os.getenv("DATABASE_URL", "NOT_SET"))
    echo_db_output: bool = bool(os.getenv("DB_ECHO", "False") == "True")  # anything but "True" is considered False


@dataclass
class JWTSettings:
    """JSON Web Token (JWT) configuration settings."""

    secret_key: SecretStr = SecretStr(os.getenv("JWT_SECRET_KEY", "NOT_SET"))
    algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expires_seconds: int = int(os.getenv("JWT_ACCESS_EXPIRES_SECONDS", 60 * 60 * 24 * 7))  # 7 days


@dataclass
class PasswordSettings:
    """Password hashing settings. bcrypt only accepts a cost between 4 and 31."""

    hash_rounds: int = int(os.getenv("PASSWORD_HASH_ROUNDS", 12))

    def __post_init__(self):
        if not 4 <= self.hash_rounds <= 31:
            raise ValueError(f"PASSWORD_HASH_ROUNDS must be between 4 and 31, got {self.hash_rounds}")


@dataclass
class GoogleOAuthSettings:
    """
    Google OAuth configuration settings.

    Google login is optional, if the client id/secret are not set the OAuth routes refuse to start the flow.
    """

    client_id: str = os.getenv("GOOGLE_CLIENT_ID", "NOT_SET")
    client_secret: SecretStr = SecretStr(os.getenv("GOOGLE_CLIENT_SECRET", "NOT_SET"))
    callback_url: str = os.getenv("GOOGLE_CALLBACK_URL", "http://localhost:5000/api/auth/google/callback")

    @property
    def is_configured(self) -> bool:
        return self.client_id != "NOT_SET" and self.client_secret.get_secret_value() != "NOT_SET"


@dataclass
class Settings:
    """Configuration settings for the TaskFlow API."""

    api: APISettings = field(default_factory=APISettings)
    database: DBSettings = field(default_factory=DBSettings)
    jwt: JWTSettings = field(default_factory=JWTSettings)
    passwords: PasswordSettings = field(default_factory=PasswordSettings)
    google: GoogleOAuthSettings = field(default_factory=GoogleOAuthSettings)

    def validate_api_settings(self) -> None:
        """
        Validate all required settings are actually set.
        This is run on startup of the API which means that later on in the codebase
        we don't have to check for any non set values, we can just assume they are set.
        """
        required_fields = {
            "TASKFLOW_ENV": self.api.environment,
            "DATABASE_URL": self.database.url,
            "JWT_SECRET_KEY": self.jwt.secret_key,
        }
        for setting_name, setting in required_fields.items():
            if isinstance(setting, str) and setting == "NOT_SET":
                raise ValueError(f"A required environment variable was not set: {setting_name=}")
            if isinstance(setting, SecretStr):
                if setting.get_secret_value() == "NOT_SET":
                    raise ValueError(f"A required environment variable was not set: {setting_name=}")
                if self.api.environment not in ["local_dev", "test"] and setting.get_secret_value() == "badpassword":
                    raise ValueError(
                        f"A secret environment variable was set to badpassword for a non local environment: {setting_name=}"
                    )


# This instance can be imported and used throughout the application.
settings = Settings()
