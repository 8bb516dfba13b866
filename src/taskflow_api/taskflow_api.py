"""
The API server for TaskFlow.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow_api.api_config import settings
from taskflow_api.db import create_all_tables, create_demo_user, engine, health_check_db
from taskflow_api.exception_handlers import register_exception_handlers
from taskflow_api.routes.auth import auth_router
from taskflow_api.routes.core import core_router
from taskflow_api.routes.projects import projects_router
from taskflow_api.routes.tasks import tasks_router
from taskflow_api.routes.users import users_router

logging.basicConfig(level=settings.api.log_level, handlers=[logging.StreamHandler(sys.stdout)])

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager that handles startup and shutdown of API server"""
    # startup
    logger.info("Starting up TaskFlow API...")

    settings.validate_api_settings()
    logger.info("All API settings are correctly set.")

    if not await health_check_db():
        raise ConnectionError("Could not connect to the database or db unhealthy. Exiting...")
    logger.info("Database connection healthy.")
    await create_all_tables()
    await create_demo_user()
    logger.info("TaskFlow API startup events complete.")

    yield

    # cleanup
    logger.info("Shutting down, closing any DB connections")
    await engine.dispose()


app = FastAPI(lifespan=lifespan, title="TaskFlow API", docs_url="/api/docs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(core_router, prefix="/api", tags=["core"])
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(tasks_router, prefix="/api/tasks", tags=["tasks"])
app.include_router(projects_router, prefix="/api/projects", tags=["projects"])
app.include_router(users_router, prefix="/api/user", tags=["user"])

register_exception_handlers(app)


def main():
    uvicorn.run("taskflow_api.taskflow_api:app", host="127.0.0.1", port=5000, reload=True)


if __name__ == "__main__":
    main()
