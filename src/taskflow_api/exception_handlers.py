"""
Global exception handlers for FastAPI.

The idea of centralising this is to:
1. Handle logging of exceptions all in one place.
2. Control what the users sees (not too much info and no accidental leakage)
3. Less work/duplication in the routes themselves, just raise the exception and the handler makes it pretty.

Every error response has the body {"detail": <message>, "type": <error type>},
validation errors also include "errors": [{"field": ..., "message": ...}].
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskflow_api.exceptions import (
    AuthenticationError,
    InputValidationError,
    StorageError,
    TaskFlowAPIException,
    UserRegistrationError,
)

logger = logging.getLogger(__name__)

# These parts of a pydantic error location say where the value came from, not which field it is.
REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def validation_error_response(errors: list[dict[str, str]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "type": InputValidationError.error_type, "errors": errors},
    )


async def authentication_error_handler(request: Request, exc: AuthenticationError):
    logger.info(f"Authentication failed for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": exc.error_type},
        headers=exc.headers,
    )


async def user_registration_error_handler(request: Request, exc: UserRegistrationError):
    logger.warning(f"User registration failed for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.user_message, "type": exc.error_type},
    )


async def input_validation_error_handler(request: Request, exc: InputValidationError):
    logger.info(f"Invalid input for {request.method} {request.url.path}: {exc.errors}")
    return validation_error_response(exc.errors)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field_parts = [str(part) for part in error.get("loc", ()) if part not in REQUEST_LOCATIONS]
        errors.append({"field": ".".join(field_parts) or "body", "message": error.get("msg", "Invalid value")})
    logger.info(f"Request validation failed for {request.method} {request.url.path}: {errors}")
    return validation_error_response(errors)


async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error for {request.method} {request.url.path}: {exc.message}", exc_info=True)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": exc.error_type},
    )


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    """Any db error that was not turned into a StorageError already, the client never sees the internals."""
    logger.error(f"Unhandled database error for {request.method} {request.url.path}", exc_info=True)
    storage_error = StorageError()
    return JSONResponse(
        status_code=storage_error.status_code,
        content={"detail": storage_error.message, "type": storage_error.error_type},
    )


async def taskflow_api_error_handler(request: Request, exc: TaskFlowAPIException):
    """Fallback for all other domain errors, e.g. NotFoundError, NotInTrashError, InvalidReferenceError."""
    logger.warning(f"{type(exc).__name__} for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": exc.error_type},
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    The most specific handler for an exception's class is used, so the subclasses registered here
    take precedence over the TaskFlowAPIException fallback.

    Type errors ignored (https://github.com/fastapi/fastapi/discussions/11741)
    """
    app.add_exception_handler(AuthenticationError, authentication_error_handler)  # type: ignore
    app.add_exception_handler(UserRegistrationError, user_registration_error_handler)  # type: ignore
    app.add_exception_handler(InputValidationError, input_validation_error_handler)  # type: ignore
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore
    app.add_exception_handler(StorageError, storage_error_handler)  # type: ignore
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)  # type: ignore
    app.add_exception_handler(TaskFlowAPIException, taskflow_api_error_handler)  # type: ignore
