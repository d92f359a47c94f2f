"""
API dependencies for the acting user and database sessions.
"""
import uuid
from typing import Optional, Annotated
from fastapi import Depends, HTTPException, status, Header
from sqlalchemy.ext.asyncio import AsyncSession

from boxkeeper.core.database import get_db


async def get_current_user_id(
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> uuid.UUID:
    """
    Acting user id, as set by the upstream authentication layer.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

    if not user_id:
        raise credentials_exception

    try:
        return uuid.UUID(user_id)
    except ValueError:
        raise credentials_exception


# Type aliases for cleaner signatures
CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
DBSession = Annotated[AsyncSession, Depends(get_db)]
