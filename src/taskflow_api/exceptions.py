"""
TaskFlow API custom exceptions.

All exceptions in this module should inherit from TaskFlowAPIException, so we can catch for that externally.
The status code of each exception is what the exception handlers send back to the client.
"""

from fastapi import status


class TaskFlowAPIException(Exception):
    """Base exception for all TaskFlow errors."""

    error_type: str = "taskflow_api_error"

    def __init__(self, message: str, status_code: int, headers: dict[str, str] | None = None):
        self.message = message
        self.status_code = status_code
        self.headers = headers or {}
        super().__init__(self.message)


class AuthenticationError(TaskFlowAPIException):
    """Base for all errors that mean the request could not be authenticated."""

    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication required"):
        default_headers = {"WWW-Authenticate": "Bearer"}
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, headers=default_headers)


class InvalidCredentialsError(AuthenticationError):
    error_type = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message)


class PasswordLoginUnavailableError(AuthenticationError):
    """Raised when a password login is attempted on an account that only has an OAuth identity."""

    error_type = "password_login_unavailable"

    def __init__(self, message: str = "Please use Google login"):
        super().__init__(message=message)


class TokenInvalidError(AuthenticationError):
    error_type = "token_invalid"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message)


class UserNotFoundError(AuthenticationError):
    """Raised when a valid token refers to a user that no longer exists (e.g. deleted account)."""

    error_type = "user_not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message=message)


class UserRegistrationError(TaskFlowAPIException):
    """Exception for failed registration of new user."""

    error_type = "user_registration_error"

    def __init__(
        self,
        internal_logging_message: str,  # for logs, can be more detailed
        user_message: str = "User already exists with this email",
    ):
        self.user_message = user_message
        super().__init__(message=internal_logging_message, status_code=status.HTTP_400_BAD_REQUEST)


class PasswordChangeError(TaskFlowAPIException):
    error_type = "password_change_error"

    def __init__(self, message: str = "Password could not be changed"):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class OAuthProviderError(TaskFlowAPIException):
    """Raised when the OAuth provider is not configured or a call to it fails."""

    error_type = "oauth_provider_error"

    def __init__(self, message: str = "OAuth login failed"):
        super().__init__(message=message, status_code=status.HTTP_502_BAD_GATEWAY)


class NotFoundError(TaskFlowAPIException):
    """
    Raised when an entity does not exist OR is not owned by the acting user.

    The two cases must not be distinguishable by the client.
    """

    error_type = "not_found"

    def __init__(self, entity: str = "Resource"):
        self.entity = entity
        super().__init__(message=f"{entity} not found", status_code=status.HTTP_404_NOT_FOUND)


class InvalidReferenceError(TaskFlowAPIException):
    """Raised when a cross reference (e.g. a task's project) points at something the user does not own."""

    error_type = "invalid_reference"

    def __init__(self, message: str = "Invalid project ID"):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class NotInTrashError(TaskFlowAPIException):
    """Raised when restore or purge is attempted on a task that has not been soft deleted."""

    error_type = "not_in_trash"

    def __init__(self, message: str = "Task not found in trash"):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND)


class InputValidationError(TaskFlowAPIException):
    """
    Raised when caller supplied values are malformed.

    Normally caught by request validation before reaching the crud layer,
    errors is a list of {"field": ..., "message": ...} pairs.
    """

    error_type = "validation_error"

    def __init__(self, errors: list[dict[str, str]], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class StorageError(TaskFlowAPIException):
    """Opaque failure of the storage backend. The original error is chained, never shown to the client."""

    error_type = "storage_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
