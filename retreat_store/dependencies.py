"""FastAPI dependencies."""
import logging

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.database import get_db
from retreat_store.models.base import UserRole
from retreat_store.models.user import User
from retreat_store.utils.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the logged-in user named by the session cookie.

    The user row is re-read on every request so role, team and balance are
    never taken from a stale session snapshot.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise AuthenticationError("Login required")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        logger.warning(f"Session refers to missing user {user_id}; clearing session")
        request.session.clear()
        raise AuthenticationError("Login required")
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin access required")
    return user
