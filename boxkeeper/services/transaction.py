"""
Transaction boundary shared by all mutating service operations.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core.errors import BoxKeeperError, OperationFailedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(db: AsyncSession, operation: str, **context: Any) -> AsyncIterator[AsyncSession]:
    """
    Run the enclosed reads and writes as one unit of work.

    Commits when the block finishes, rolls back on any exception. Domain
    errors propagate unchanged; storage errors are logged with the operation
    name and ids from ``context`` and re-raised as ``OperationFailedError``.
    """
    try:
        yield db
        await db.commit()
    except BoxKeeperError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        logger.error(f"{operation} failed ({details}): {e}", exc_info=True)
        raise OperationFailedError() from e
    except Exception:
        await db.rollback()
        raise
