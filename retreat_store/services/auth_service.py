"""Authentication helpers for session logins."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.models.team import Team
from retreat_store.models.user import User
from retreat_store.utils.exceptions import AuthenticationError, InternalError, ValidationError
from retreat_store.utils.passwords import (
    PasswordValidationError,
    hash_password,
    validate_password_strength,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Checks credentials and builds the session view of a user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials.

        Raises:
            ValidationError: If either field is blank.
            AuthenticationError: If the username is unknown or the password is wrong.
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")

        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for username={username!r}")
            raise AuthenticationError("Invalid username or password")

        logger.info(f"User {user.id} logged in")
        return user

    async def session_user(self, user_id: int) -> dict | None:
        """Current account snapshot: id, username, role, team and balance."""
        result = await self.db.execute(
            select(User, Team.name)
            .outerjoin(Team, Team.id == User.team_id)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.first()
        if row is None:
            return None
        user, team_name = row
        return {
            "id": user.id,
            "username": user.username,
            "role": user.role,
            "team_id": user.team_id,
            "team_name": team_name,
            "balance": user.balance,
        }

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Replace a user's password after checking the current one."""
        if not current_password or not new_password:
            raise ValidationError("Current and new password are required")
        try:
            validate_password_strength(new_password)
        except PasswordValidationError as exc:
            raise ValidationError(str(exc)) from exc
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user_id = user.id
        try:
            user.password_hash = hash_password(new_password)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to change password for user {user_id}: {exc}")
            raise InternalError("Failed to change password") from exc

        logger.info(f"Password changed for user {user_id}")
