"""
Helper for running several writes against the db as a single atomic unit.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow_api.exceptions import StorageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Run several writes as one unit: commit them all on exit, or roll them all back.

    Any backend failure inside the block is raised as a StorageError (original error chained).
    Domain errors raised inside the block also roll back, but propagate unchanged.
    """
    try:
        yield db
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Atomic unit rolled back due to storage error: {e}")
        raise StorageError() from e
    except Exception:
        await db.rollback()
        raise
