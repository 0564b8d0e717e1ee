"""Purchase service: store purchases and order management."""
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.models.base import SPENDING_ROLES, InventorySource, OrderStatus
from retreat_store.models.order import Order
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


class PurchaseService:
    """Buys products from the shared store into the buyer's team inventory."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transactions = TransactionService(db)
        self.stock = StockService(db)
        self.inventory = InventoryService(db)

    async def purchase(self, buyer: User, product_id: int | None, quantity: int | None) -> dict:
        """Purchase ``quantity`` units of a product for the buyer's team.

        Debits the buyer, records the order and its ledger entry, takes the
        units out of stock and credits the team inventory. All of it commits
        together or not at all.

        Args:
            buyer: Acting user; must be a team leader or admin with a team.
            product_id: Product to buy.
            quantity: Units to buy, at least one.

        Returns:
            Result dict with ``order_id``, ``new_balance``, ``sold_out`` and a
            display ``message``.

        Raises:
            AuthorizationError: If the buyer may not spend.
            ValidationError: If input is missing or the buyer has no team.
            NotFoundError: If the product is missing or inactive.
            InsufficientStockError: If the store holds fewer units.
            InsufficientBalanceError: If the buyer cannot cover the price.
        """
        if buyer.role not in SPENDING_ROLES:
            raise AuthorizationError("Only team leaders can purchase items")
        if not product_id or quantity is None or quantity <= 0:
            raise ValidationError("Product and a positive quantity are required")
        if buyer.team_id is None:
            raise ValidationError("You must belong to a team to purchase items")
        buyer_id, team_id = buyer.id, buyer.team_id

        try:
            product = await self.stock.get_active_product(product_id)
            product_name = product.name
            if product.stock_quantity < quantity:
                raise InsufficientStockError()

            total_price = product.price * quantity
            balance = await self.transactions.get_balance(buyer_id)
            if balance < total_price:
                raise InsufficientBalanceError()

            new_balance = await self.transactions.debit_balance(buyer_id, total_price)

            order = Order(
                user_id=buyer_id,
                team_id=team_id,
                product_id=product.id,
                quantity=quantity,
                total_price=total_price,
                status=OrderStatus.PENDING.value,
                verified=False,
            )
            self.db.add(order)
            await self.db.flush()
            order_id = order.id

            await self.transactions.record(
                buyer_id,
                TransactionService.PURCHASE,
                -total_price,
                f"Purchased {product_name} x{quantity}",
                reference_id=order_id,
            )

            remaining_stock = await self.stock.reserve(product.id, quantity)
            await self.inventory.add_to_team(
                team_id,
                product.id,
                quantity,
                InventorySource.PURCHASE.value,
                reference_id=order_id,
            )
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Purchase by user {buyer_id} of product {product_id} failed: {exc}")
            raise InternalError("Purchase failed") from exc

        sold_out = remaining_stock <= 0
        message = "Purchase successful!"
        if sold_out:
            message += " (Product now sold out)"

        logger.info(
            f"Order {order_id}: user {buyer_id} bought {quantity} x product {product_id} "
            f"for {total_price}, balance now {new_balance}"
        )
        return {
            "success": True,
            "order_id": order_id,
            "new_balance": new_balance,
            "total_price": total_price,
            "sold_out": sold_out,
            "message": message,
        }

    async def list_orders(self) -> list[dict]:
        """Every order, newest first (admin view)."""
        return await self._order_rows(select(Order))

    async def list_user_orders(self, user_id: int) -> list[dict]:
        return await self._order_rows(select(Order).where(Order.user_id == user_id))

    async def list_team_orders(self, team_id: int) -> list[dict]:
        return await self._order_rows(select(Order).where(Order.team_id == team_id))

    async def _order_rows(self, stmt) -> list[dict]:
        stmt = (
            stmt.add_columns(User.username, Team.name, Product.name)
            .join(User, User.id == Order.user_id)
            .join(Team, Team.id == Order.team_id)
            .join(Product, Product.id == Order.product_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        result = await self.db.execute(stmt)
        return [
            {
                "id": order.id,
                "user_id": order.user_id,
                "username": username,
                "team_id": order.team_id,
                "team_name": team_name,
                "product_id": order.product_id,
                "product_name": product_name,
                "quantity": order.quantity,
                "total_price": order.total_price,
                "status": order.status,
                "verified": order.verified,
                "created_at": order.created_at,
            }
            for order, username, team_name, product_name in result.all()
        ]

    async def verify_order(self, order_id: int) -> dict:
        """Mark an order as handed over."""
        try:
            result = await self.db.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(verified=True, status=OrderStatus.VERIFIED.value)
                .returning(Order.id)
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Order not found")
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise InternalError("Failed to verify order") from exc

        logger.info(f"Order {order_id} verified")
        return {"success": True, "order_id": order_id, "message": "Order verified"}
