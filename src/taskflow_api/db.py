"""
Handles connection between FastAPI and the database.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskflow_api.api_config import settings
from taskflow_api.crud.transaction import atomic
from taskflow_api.crud.users import get_user_by_email
from taskflow_api.models import Base, ProjectDB, TaskDB, TaskPriority, UserDB
from taskflow_api.schemas.users import UserCreate
from taskflow_api.security import get_password_hash

logger = logging.getLogger(__name__)


# NOTE: The creation of the AsyncSessionLocal should only occur once, when the module is loaded.
# AKA: Do not refactor to have these in functions.
engine = create_async_engine(
    url=settings.database.url.get_secret_value(),
    echo=settings.database.echo_db_output,
    pool_pre_ping=True,
)
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session. To be used in FastAPI endpoints."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def health_check_db() -> bool:
    """Check if the database connection is healthy."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


async def create_all_tables() -> None:
    """Create any missing tables. Existing tables are left as they are."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def create_demo_user() -> None:
    """
    Create a demo user with some sample projects and tasks if:
    1. DEMO_USER_EMAIL and DEMO_USER_PASSWORD env vars are set.
    2. no user with that email already exists in the db.
    """
    demo_email = settings.api.demo_user_email
    demo_password = settings.api.demo_user_password

    if demo_email == "NOT_SET" or demo_password.get_secret_value() == "NOT_SET":
        logger.info("No demo user env vars set (DEMO_USER_EMAIL, DEMO_USER_PASSWORD), skipping demo data creation")
        return

    async with AsyncSessionLocal() as db:
        if await get_user_by_email(db=db, email=demo_email.lower()):
            logger.info("Demo user already exists, skipping demo data creation")
            return

        user_data = UserCreate(email=demo_email, password=demo_password, name="Demo User")

        today = datetime.now(timezone.utc)
        tomorrow = today + timedelta(days=1)
        next_week = today + timedelta(days=7)

        # The user only exists together with all of their sample data.
        async with atomic(db):
            demo_user = UserDB(
                email=user_data.email,
                name=user_data.name,
                hashed_password=get_password_hash(user_data.password),
            )
            db.add(demo_user)
            await db.flush()

            work = ProjectDB(name="Work Projects", color="#3B82F6", owner_id=demo_user.id)
            personal = ProjectDB(name="Personal Tasks", color="#10B981", owner_id=demo_user.id)
            db.add_all([work, personal])
            await db.flush()
            db.add_all(
                [
                    TaskDB(
                        title="Review project proposal",
                        description="Go through the Q4 project proposal and provide feedback",
                        due_date=today,
                        priority=TaskPriority.HIGH,
                        owner_id=demo_user.id,
                        project_id=work.id,
                    ),
                    TaskDB(
                        title="Team meeting preparation",
                        description="Prepare slides for weekly team meeting",
                        due_date=tomorrow,
                        priority=TaskPriority.MEDIUM,
                        owner_id=demo_user.id,
                        project_id=work.id,
                    ),
                    TaskDB(
                        title="Buy groceries",
                        description="Milk, eggs, bread, vegetables",
                        due_date=today,
                        priority=TaskPriority.LOW,
                        owner_id=demo_user.id,
                        project_id=personal.id,
                    ),
                    TaskDB(
                        title="Book dentist appointment",
                        description="Schedule routine checkup",
                        due_date=next_week,
                        priority=TaskPriority.MEDIUM,
                        owner_id=demo_user.id,
                        project_id=personal.id,
                    ),
                    TaskDB(
                        title="Complete online course",
                        description="Finish React advanced patterns module",
                        due_date=next_week,
                        priority=TaskPriority.HIGH,
                        owner_id=demo_user.id,
                        project_id=work.id,
                        is_complete=True,
                    ),
                ]
            )
    logger.info(f"Demo user created with email: {demo_user.email}")
