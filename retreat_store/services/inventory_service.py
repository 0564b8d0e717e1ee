"""Team inventory: additive upserts and inventory views."""
import logging
from datetime import datetime, UTC

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.models.base import InventorySource
from retreat_store.models.product import Product
from retreat_store.models.team_inventory import TeamInventory, TeamInventoryMovement
from retreat_store.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


class InventoryService:
    """Maintains one running-total row per (team, product)."""

    SOURCES = frozenset(source.value for source in InventorySource)

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert
        return sqlite_insert

    async def add_to_team(
        self,
        team_id: int,
        product_id: int,
        quantity: int,
        obtained_from: str,
        reference_id: int | None = None,
    ) -> int:
        """Credit ``quantity`` units of a product to a team.

        Runs a single ``INSERT ... ON CONFLICT (team_id, product_id) DO UPDATE``
        that adds to the stored quantity, so concurrent contributions from the
        same team accumulate instead of overwriting each other. The movement
        log row is written in the same unit of work. Does not commit.

        Returns:
            The team's total quantity of the product after the credit.
        """
        if quantity <= 0:
            raise ValidationError("Inventory quantity must be positive")
        if obtained_from not in self.SOURCES:
            raise ValidationError(f"Unknown inventory source: {obtained_from}")

        now = datetime.now(UTC)
        stmt = self._insert()(TeamInventory).values(
            team_id=team_id,
            product_id=product_id,
            quantity=quantity,
            obtained_from=obtained_from,
            reference_id=reference_id,
            obtained_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["team_id", "product_id"],
            set_={
                "quantity": TeamInventory.quantity + stmt.excluded.quantity,
                "obtained_from": stmt.excluded.obtained_from,
                "reference_id": stmt.excluded.reference_id,
                "obtained_at": stmt.excluded.obtained_at,
            },
        ).returning(TeamInventory.quantity)

        result = await self.db.execute(stmt)
        total = result.scalar_one()

        self.db.add(
            TeamInventoryMovement(
                team_id=team_id,
                product_id=product_id,
                quantity=quantity,
                obtained_from=obtained_from,
                reference_id=reference_id,
                created_at=now,
            )
        )
        await self.db.flush()

        logger.info(
            f"Team {team_id} inventory of product {product_id} +{quantity} "
            f"({obtained_from}, ref={reference_id}) -> {total}"
        )
        return total

    async def get_quantity(self, team_id: int, product_id: int) -> int:
        result = await self.db.execute(
            select(TeamInventory.quantity).where(
                TeamInventory.team_id == team_id,
                TeamInventory.product_id == product_id,
            )
        )
        return result.scalar_one_or_none() or 0

    async def team_inventory(self, team_id: int) -> list[dict]:
        """Products a team currently holds, grouped by category."""
        result = await self.db.execute(
            select(TeamInventory, Product.name, Product.category, Product.price)
            .join(Product, Product.id == TeamInventory.product_id)
            .where(TeamInventory.team_id == team_id, TeamInventory.quantity > 0)
            .order_by(Product.category, Product.name)
        )
        return [
            {
                "product_id": row.product_id,
                "product_name": name,
                "category": category,
                "price": price,
                "quantity": row.quantity,
                "obtained_from": row.obtained_from,
                "reference_id": row.reference_id,
                "obtained_at": row.obtained_at,
            }
            for row, name, category, price in result.all()
        ]

    async def movements(self, team_id: int, product_id: int | None = None) -> list[TeamInventoryMovement]:
        """Every contribution to a team's inventory, oldest first."""
        stmt = select(TeamInventoryMovement).where(TeamInventoryMovement.team_id == team_id)
        if product_id is not None:
            stmt = stmt.where(TeamInventoryMovement.product_id == product_id)
        result = await self.db.execute(stmt.order_by(TeamInventoryMovement.id))
        return list(result.scalars().all())
