"""Transaction service: the append-only ledger and atomic balance updates."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
import logging

from retreat_store.models.base import TransactionType, UserRole
from retreat_store.models.transaction import Transaction
from retreat_store.models.user import User
from retreat_store.utils.exceptions import InsufficientBalanceError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for ledger entries and balance mutations.

    Methods never commit: callers run them inside their own unit of work and
    commit or roll back the whole sequence.
    """

    # Transaction type constants
    EARN = TransactionType.EARN.value
    PURCHASE = TransactionType.PURCHASE.value
    ADMIN_ADJUSTMENT = TransactionType.ADMIN_ADJUSTMENT.value
    DONATION_SENT = TransactionType.DONATION_SENT.value
    DONATION_RECEIVED = TransactionType.DONATION_RECEIVED.value

    DASHBOARD_LIMIT_ADMIN = 10
    DASHBOARD_LIMIT_TEAM = 20

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, user_id: int) -> int:
        result = await self.db.execute(select(User.balance).where(User.id == user_id))
        balance = result.scalar_one_or_none()
        if balance is None:
            raise NotFoundError("User not found")
        return balance

    async def debit_balance(self, user_id: int, amount: int) -> int:
        """Subtract ``amount`` from a balance if it is covered.

        The floor check lives in the UPDATE's WHERE clause, so two concurrent
        debits can never both pass against the same funds.

        Returns:
            The balance after the debit.

        Raises:
            InsufficientBalanceError: If the balance is lower than ``amount``.
        """
        if amount <= 0:
            raise ValidationError("Debit amount must be positive")

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.balance >= amount)
            .values(balance=User.balance - amount)
            .returning(User.balance)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise InsufficientBalanceError()
        return new_balance

    async def credit_balance(self, user_id: int, amount: int) -> int:
        """Add ``amount`` to a balance and return the new balance."""
        if amount <= 0:
            raise ValidationError("Credit amount must be positive")
        return await self._apply_delta(user_id, amount)

    async def adjust_balance(self, user_id: int, delta: int) -> int:
        """Apply a signed admin delta. The result may go negative."""
        return await self._apply_delta(user_id, delta)

    async def _apply_delta(self, user_id: int, delta: int) -> int:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(balance=User.balance + delta)
            .returning(User.balance)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise NotFoundError("User not found")
        return new_balance

    async def record(
        self,
        user_id: int,
        trans_type: str,
        amount: int,
        description: str,
        reference_id: int | None = None,
    ) -> Transaction:
        """Append a ledger entry and flush it so its id is available."""
        transaction = Transaction(
            user_id=user_id,
            type=trans_type,
            amount=amount,
            description=description,
            reference_id=reference_id,
        )
        self.db.add(transaction)
        await self.db.flush()

        logger.info(
            f"Transaction recorded: user={user_id}, type={trans_type}, "
            f"amount={amount}, reference={reference_id}"
        )
        return transaction

    async def has_transactions(self, user_id: int) -> bool:
        result = await self.db.execute(
            select(Transaction.id).where(Transaction.user_id == user_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_for_user(self, user_id: int, limit: int | None = None) -> list[dict]:
        """Newest-first ledger entries for one user."""
        stmt = (
            select(Transaction, User.username)
            .join(User, User.id == Transaction.user_id)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return await self._rows(stmt)

    async def list_for_team(self, team_id: int, limit: int | None = None) -> list[dict]:
        """Newest-first ledger entries for every member of a team."""
        stmt = (
            select(Transaction, User.username)
            .join(User, User.id == Transaction.user_id)
            .where(User.team_id == team_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        return await self._rows(stmt)

    async def list_for_dashboard(self, user: User) -> list[dict]:
        """Recent entries scoped by role.

        Admins see their own history, team members see their whole team's,
        and users without a team see their own.
        """
        if user.role == UserRole.ADMIN.value:
            return await self.list_for_user(user.id, self.DASHBOARD_LIMIT_ADMIN)
        if user.team_id is not None:
            return await self.list_for_team(user.team_id, self.DASHBOARD_LIMIT_TEAM)
        return await self.list_for_user(user.id, self.DASHBOARD_LIMIT_TEAM)

    async def _rows(self, stmt) -> list[dict]:
        result = await self.db.execute(stmt)
        return [
            {
                "id": transaction.id,
                "user_id": transaction.user_id,
                "username": username,
                "type": transaction.type,
                "amount": transaction.amount,
                "description": transaction.description,
                "reference_id": transaction.reference_id,
                "created_at": transaction.created_at,
            }
            for transaction, username in result.all()
        ]
