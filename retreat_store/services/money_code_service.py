"""Money code generation and redemption."""
import logging
import secrets
import string
import time
from datetime import datetime, UTC

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from retreat_store.config import get_settings
from retreat_store.models.base import SPENDING_ROLES, UserRole
from retreat_store.models.money_code import MoneyCode
from retreat_store.models.user import User
from retreat_store.services.transaction_service import TransactionService
from retreat_store.utils.exceptions import (
    AuthorizationError,
    InternalError,
    InvalidCodeError,
    LedgerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 6


def make_code(prefix: str) -> str:
    """Build a code from the prefix, the epoch in milliseconds and a random base36 suffix."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}{int(time.time() * 1000)}{suffix}"


class MoneyCodeService:
    """Issues one-time codes and credits balances when they are redeemed."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()
        self.transactions = TransactionService(db)

    async def generate(self, actor: User, amount: int, count: int = 1) -> dict:
        """Create ``count`` codes worth ``amount`` each in one batch insert.

        Args:
            actor: Acting user; must be an admin.
            amount: Value credited per code.
            count: Number of codes to create.

        Returns:
            Result dict with the number generated and the code strings.
        """
        if actor.role != UserRole.ADMIN.value:
            raise AuthorizationError("Admin access required")
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Valid amount required")
        if not isinstance(count, int) or not 1 <= count <= self.settings.money_code_max_batch:
            raise ValidationError(
                f"Quantity must be between 1 and {self.settings.money_code_max_batch}"
            )

        actor_id = actor.id
        now = datetime.now(UTC)
        codes = [make_code(self.settings.money_code_prefix) for _ in range(count)]
        try:
            await self.db.execute(
                insert(MoneyCode),
                [{"code": code, "amount": amount, "used": False, "created_at": now} for code in codes],
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to generate {count} money codes: {exc}")
            raise InternalError("Failed to generate codes") from exc

        logger.info(f"Admin {actor_id} generated {count} money codes worth {amount}")
        return {"success": True, "generated": count, "amount": amount, "codes": codes}

    async def redeem(self, actor: User, code: str) -> dict:
        """Mark a code used and credit its amount to the actor.

        The ``used_by IS NULL`` condition on the UPDATE is the double-spend
        guard: of two concurrent redemptions only one can match the row.

        Raises:
            AuthorizationError: If the actor may not redeem codes.
            ValidationError: If no code was supplied.
            InvalidCodeError: If the code is unknown or already used.
        """
        if actor.role not in SPENDING_ROLES:
            raise AuthorizationError("Only team leaders can redeem codes")
        code = (code or "").strip()
        if not code:
            raise ValidationError("Code is required")
        actor_id = actor.id

        try:
            result = await self.db.execute(
                update(MoneyCode)
                .where(MoneyCode.code == code, MoneyCode.used_by.is_(None))
                .values(used=True, used_by=actor_id, used_at=datetime.now(UTC))
                .returning(MoneyCode.amount)
            )
            amount = result.scalar_one_or_none()
            if amount is None:
                raise InvalidCodeError()

            new_balance = await self.transactions.credit_balance(actor_id, amount)
            await self.transactions.record(
                actor_id,
                TransactionService.EARN,
                amount,
                f"Redeemed code: {code}",
            )
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to redeem code for user {actor_id}: {exc}")
            raise InternalError("Failed to redeem code") from exc

        logger.info(f"User {actor_id} redeemed a code worth {amount}, balance now {new_balance}")
        return {"success": True, "amount": amount, "new_balance": new_balance}

    async def list_codes(self) -> list[dict]:
        """All codes, newest first, with the redeeming username."""
        redeemer = aliased(User)
        result = await self.db.execute(
            select(MoneyCode, redeemer.username)
            .outerjoin(redeemer, redeemer.id == MoneyCode.used_by)
            .order_by(MoneyCode.created_at.desc(), MoneyCode.id.desc())
        )
        return [
            {
                "id": money_code.id,
                "code": money_code.code,
                "amount": money_code.amount,
                "used": money_code.used,
                "used_by": money_code.used_by,
                "used_by_username": username,
                "created_at": money_code.created_at,
                "used_at": money_code.used_at,
            }
            for money_code, username in result.all()
        ]
