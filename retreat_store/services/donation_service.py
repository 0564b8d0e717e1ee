"""Donation service: buy goods from the store on behalf of another team."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from retreat_store.models.base import SPENDING_ROLES, InventorySource, UserRole
from retreat_store.models.donation import Donation
from retreat_store.models.product import Product
from retreat_store.models.team import Team
from retreat_store.models.user import User
from retreat_store.services.inventory_service import InventoryService
from retreat_store.services.stock_service import StockService
from retreat_store.services.transaction_service import TransactionService
from retreat_store.utils.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InsufficientStockError,
    InternalError,
    LedgerError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class DonationService:
    """Moves store goods into another team's inventory at the donor's expense.

    The donor's balance pays the store price; the recipient team gains
    inventory only. Balance, stock, inventory, the donation record and the
    donor's ledger entry commit together. The recipient leader's
    informational ledger entry is written afterwards and may fail alone.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transactions = TransactionService(db)
        self.stock = StockService(db)
        self.inventory = InventoryService(db)

    async def donate(
        self,
        donor: User,
        recipient_team_id: int | None,
        product_id: int | None,
        quantity: int | None,
        message: str | None = None,
    ) -> dict:
        """Donate ``quantity`` units of a product to another team.

        Args:
            donor: Acting user; must be a team leader or admin with a team.
            recipient_team_id: Team receiving the goods; not the donor's own.
            product_id: Product bought from the store.
            quantity: Units to donate, at least one.
            message: Optional note stored with the donation.

        Returns:
            Result dict with ``donation_id``, ``new_balance`` and ``message``.

        Raises:
            AuthorizationError: If the donor may not spend.
            ValidationError: On missing input or a donation to the donor's own team.
            NotFoundError: If the product or recipient team is missing.
            InsufficientStockError: If the store holds fewer units.
            InsufficientBalanceError: If the donor cannot cover the cost.
        """
        if donor.role not in SPENDING_ROLES:
            raise AuthorizationError("Only team leaders can donate")
        if not recipient_team_id or not product_id or quantity is None or quantity <= 0:
            raise ValidationError("Recipient team, product and a positive quantity are required")
        if donor.team_id is None:
            raise ValidationError("You must belong to a team to donate")
        if recipient_team_id == donor.team_id:
            raise ValidationError("Cannot donate to your own team")
        donor_id, donor_team_id = donor.id, donor.team_id

        try:
            product = await self.stock.get_active_product(product_id)
            product_name = product.name
            if product.stock_quantity < quantity:
                raise InsufficientStockError()

            total_cost = product.price * quantity
            balance = await self.transactions.get_balance(donor_id)
            if balance < total_cost:
                raise InsufficientBalanceError()

            recipient_team = await self._load_team(recipient_team_id)
            recipient_team_name = recipient_team.name
            recipient_leader_id = await self._find_leader(recipient_team_id)
            donor_team_name = await self._team_name(donor_team_id)

            new_balance = await self.transactions.debit_balance(donor_id, total_cost)
            await self.stock.reserve(product_id, quantity)

            donation = Donation(
                donor_id=donor_id,
                recipient_id=recipient_leader_id,
                product_id=product_id,
                amount=total_cost,
                quantity=quantity,
                message=message or "",
                donor_team_id=donor_team_id,
                recipient_team_id=recipient_team_id,
            )
            self.db.add(donation)
            await self.db.flush()
            donation_id = donation.id

            await self.inventory.add_to_team(
                recipient_team_id,
                product_id,
                quantity,
                InventorySource.DONATION.value,
                reference_id=donation_id,
            )
            await self.transactions.record(
                donor_id,
                TransactionService.DONATION_SENT,
                -total_cost,
                f"Donated {quantity} {product_name}(s) to {recipient_team_name}",
                reference_id=donation_id,
            )
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Donation by user {donor_id} to team {recipient_team_id} failed: {exc}")
            raise InternalError("Donation failed") from exc

        logger.info(
            f"Donation {donation_id}: user {donor_id} sent {quantity} x product {product_id} "
            f"to team {recipient_team_id} for {total_cost}, balance now {new_balance}"
        )

        if recipient_leader_id is not None:
            await self._record_receipt(
                recipient_leader_id,
                f"Received {quantity} {product_name}(s) from team {donor_team_name}",
                donation_id,
            )

        return {
            "success": True,
            "donation_id": donation_id,
            "new_balance": new_balance,
            "total_cost": total_cost,
            "message": f"Successfully donated {quantity} {product_name}(s) to {recipient_team_name}",
        }

    async def _record_receipt(self, leader_id: int, description: str, donation_id: int) -> None:
        """Write the recipient's informational ledger entry in its own commit."""
        try:
            await self.transactions.record(
                leader_id,
                TransactionService.DONATION_RECEIVED,
                0,
                description,
                reference_id=donation_id,
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to record receipt of donation {donation_id} for user {leader_id}: {exc}")

    async def _load_team(self, team_id: int) -> Team:
        result = await self.db.execute(select(Team).where(Team.id == team_id))
        team = result.scalar_one_or_none()
        if not team:
            raise NotFoundError("Recipient team not found")
        return team

    async def _team_name(self, team_id: int) -> str:
        result = await self.db.execute(select(Team.name).where(Team.id == team_id))
        return result.scalar_one_or_none() or str(team_id)

    async def _find_leader(self, team_id: int) -> int | None:
        result = await self.db.execute(
            select(User.id)
            .where(User.team_id == team_id, User.role == UserRole.TEAM_LEADER.value)
            .order_by(User.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_recipient_teams(self, donor: User) -> list[dict]:
        """Teams the donor may donate to: every team but their own."""
        stmt = select(Team.id, Team.name).order_by(Team.name)
        if donor.team_id is not None:
            stmt = stmt.where(Team.id != donor.team_id)
        result = await self.db.execute(stmt)
        return [{"id": team_id, "name": name} for team_id, name in result.all()]

    async def list_donations(self) -> list[dict]:
        """Every donation, newest first (admin view)."""
        donor_team = aliased(Team)
        recipient_team = aliased(Team)
        result = await self.db.execute(
            select(Donation, User.username, Product.name, donor_team.name, recipient_team.name)
            .join(User, User.id == Donation.donor_id)
            .join(Product, Product.id == Donation.product_id)
            .join(donor_team, donor_team.id == Donation.donor_team_id)
            .join(recipient_team, recipient_team.id == Donation.recipient_team_id)
            .order_by(Donation.created_at.desc(), Donation.id.desc())
        )
        return [
            {
                "id": donation.id,
                "donor_id": donation.donor_id,
                "donor_username": donor_username,
                "recipient_id": donation.recipient_id,
                "product_id": donation.product_id,
                "product_name": product_name,
                "amount": donation.amount,
                "quantity": donation.quantity,
                "message": donation.message,
                "donor_team_name": donor_team_name,
                "recipient_team_name": recipient_team_name,
                "created_at": donation.created_at,
            }
            for donation, donor_username, product_name, donor_team_name, recipient_team_name in result.all()
        ]
