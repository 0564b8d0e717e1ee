"""Admin management of user accounts and team leadership."""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from retreat_store.models.base import UserRole
from retreat_store.models.team import Team
from retreat_store.models.user import User
from retreat_store.services.transaction_service import TransactionService
from retreat_store.utils.exceptions import (
    ConflictError,
    InternalError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from retreat_store.utils.passwords import PasswordValidationError, hash_password, validate_password_strength

logger = logging.getLogger(__name__)

_UNSET = object()


class UserService:
    """Creates, edits and deletes accounts and keeps one leader per team."""

    ROLES = frozenset(role.value for role in UserRole)

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transactions = TransactionService(db)

    async def get_user(self, user_id: int) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_row(self, user_id: int) -> dict:
        result = await self.db.execute(
            select(User, Team.name)
            .outerjoin(Team, Team.id == User.team_id)
            .where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError("User not found")
        return _user_row(*row)

    async def list_users(self) -> list[dict]:
        result = await self.db.execute(
            select(User, Team.name)
            .outerjoin(Team, Team.id == User.team_id)
            .order_by(User.role, User.username)
        )
        return [_user_row(user, team_name) for user, team_name in result.all()]

    async def create_user(
        self,
        username: str,
        password: str,
        role: str = UserRole.PARTICIPANT.value,
        team_id: int | None = None,
    ) -> User:
        """Create an account. A new team leader replaces the team's current one."""
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        self._validate_role(role)
        self._validate_password(password)

        try:
            if await self.get_by_username(username):
                raise ConflictError("Username already exists")
            if team_id is not None:
                await self._require_team(team_id)

            user = User(
                username=username,
                password_hash=hash_password(password),
                role=role,
                team_id=team_id,
                balance=0,
            )
            self.db.add(user)
            await self.db.flush()
            await self._sync_leadership(user.id, role, team_id)
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to create user {username}: {exc}")
            raise InternalError("Failed to create user") from exc

        await self.db.refresh(user)
        logger.info(f"Created user {user.id} ({username}) role={role} team={team_id}")
        return user

    async def update_user(
        self,
        user_id: int,
        *,
        username: str | None = None,
        role: str | None = None,
        team_id=_UNSET,
        balance: int | None = None,
        password: str | None = None,
    ) -> User:
        """Edit an account.

        A changed balance is applied as a signed delta and logged to the
        ledger as an ``admin_adjustment``; this is the only path by which a
        balance may go negative. Pass ``team_id=None`` to remove the user from
        their team.
        """
        if role is not None:
            self._validate_role(role)
        if password:
            self._validate_password(password)

        try:
            user = await self.get_user(user_id)
            if username is not None:
                username = username.strip()
                if not username:
                    raise ValidationError("Username cannot be empty")
                if username != user.username and await self.get_by_username(username):
                    raise ConflictError("Username already exists")
                user.username = username
            if team_id is not _UNSET and team_id is not None:
                await self._require_team(team_id)

            new_role = role if role is not None else user.role
            new_team_id = user.team_id if team_id is _UNSET else team_id
            if new_role != user.role or new_team_id != user.team_id:
                await self._release_leadership(user.id)
            user.role = new_role
            user.team_id = new_team_id
            if password:
                user.password_hash = hash_password(password)
            await self.db.flush()
            await self._sync_leadership(user.id, new_role, new_team_id)

            if balance is not None:
                delta = balance - await self.transactions.get_balance(user.id)
                if delta:
                    await self.transactions.adjust_balance(user.id, delta)
                    if delta > 0:
                        description = f"Admin added {delta} to balance"
                    else:
                        description = f"Admin removed {abs(delta)} from balance"
                    await self.transactions.record(
                        user.id, TransactionService.ADMIN_ADJUSTMENT, delta, description
                    )
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {exc}")
            raise InternalError("Failed to update user") from exc

        await self.db.refresh(user)
        logger.info(f"Updated user {user_id}")
        return user

    async def delete_user(self, user_id: int) -> None:
        """Delete an account that has never touched the ledger."""
        try:
            user = await self.get_user(user_id)
            if user.role == UserRole.ADMIN.value:
                raise ConflictError("Cannot delete admin user")
            if await self.transactions.has_transactions(user_id):
                raise ConflictError("Cannot delete user with transaction history")

            await self._release_leadership(user_id)
            await self.db.delete(user)
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {exc}")
            raise InternalError("Failed to delete user") from exc

        logger.info(f"Deleted user {user_id}")

    async def list_teams(self) -> list[dict]:
        """Teams with their leader's name and head count."""
        leader = aliased(User)
        member_counts = (
            select(User.team_id, func.count(User.id).label("member_count"))
            .where(User.team_id.is_not(None))
            .group_by(User.team_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Team, leader.username, func.coalesce(member_counts.c.member_count, 0))
            .outerjoin(leader, leader.id == Team.leader_id)
            .outerjoin(member_counts, member_counts.c.team_id == Team.id)
            .order_by(Team.name)
        )
        return [
            {
                "id": team.id,
                "name": team.name,
                "leader_id": team.leader_id,
                "leader_name": leader_name,
                "member_count": int(member_count),
            }
            for team, leader_name, member_count in result.all()
        ]

    async def team_members(self, team_id: int) -> list[dict]:
        await self._require_team(team_id)
        result = await self.db.execute(
            select(User, Team.name)
            .join(Team, Team.id == User.team_id)
            .where(User.team_id == team_id)
            .order_by(User.role.desc(), User.username)
        )
        return [_user_row(user, team_name) for user, team_name in result.all()]

    async def assign_leader(self, team_id: int, user_id: int) -> dict:
        """Make ``user_id`` the leader of ``team_id``, demoting the previous one."""
        try:
            await self._require_team(team_id)
            user = await self.get_user(user_id)
            if user.team_id != team_id:
                raise ValidationError("User is not a member of this team")
            if user.role == UserRole.ADMIN.value:
                raise ValidationError("Admins cannot lead a team")

            await self._sync_leadership(user_id, UserRole.TEAM_LEADER.value, team_id)
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to assign leader {user_id} to team {team_id}: {exc}")
            raise InternalError("Failed to assign team leader") from exc

        logger.info(f"User {user_id} is now leader of team {team_id}")
        return {"success": True, "team_id": team_id, "leader_id": user_id}

    async def _sync_leadership(self, user_id: int, role: str, team_id: int | None) -> None:
        """Enforce a single team_leader per team after ``user_id`` takes ``role``."""
        if role != UserRole.TEAM_LEADER.value or team_id is None:
            return

        await self.db.execute(
            update(User)
            .where(
                User.team_id == team_id,
                User.role == UserRole.TEAM_LEADER.value,
                User.id != user_id,
            )
            .values(role=UserRole.PARTICIPANT.value)
        )
        await self.db.execute(
            update(User).where(User.id == user_id).values(role=UserRole.TEAM_LEADER.value)
        )
        await self.db.execute(update(Team).where(Team.id == team_id).values(leader_id=user_id))

    async def _release_leadership(self, user_id: int) -> None:
        await self.db.execute(
            update(Team).where(Team.leader_id == user_id).values(leader_id=None)
        )

    async def _require_team(self, team_id: int) -> None:
        result = await self.db.execute(select(Team.id).where(Team.id == team_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Team not found")

    def _validate_role(self, role: str) -> None:
        if role not in self.ROLES:
            raise ValidationError(f"Invalid role: {role}")

    @staticmethod
    def _validate_password(password: str) -> None:
        try:
            validate_password_strength(password)
        except PasswordValidationError as exc:
            raise ValidationError(str(exc)) from exc


def _user_row(user: User, team_name: str | None) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "team_id": user.team_id,
        "team_name": team_name,
        "balance": user.balance,
        "created_at": user.created_at,
    }
