"""Admin product catalogue management."""
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.models.donation import Donation
from retreat_store.models.order import Order
from retreat_store.models.product import Product
from retreat_store.models.team_inventory import TeamInventory
from retreat_store.services.stock_service import StockService
from retreat_store.utils.exceptions import (
    ConflictError,
    InternalError,
    LedgerError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "item"


class ProductService:
    """CRUD for products. Stock changes go through ``StockService``."""

    STOCK_MODES = ("set", "adjust")

    def __init__(self, db: AsyncSession):
        self.db = db
        self.stock = StockService(db)

    async def get_product(self, product_id: int) -> Product:
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def list_active(self) -> list[Product]:
        """Products on sale, grouped by category."""
        result = await self.db.execute(
            select(Product).where(Product.is_active.is_(True)).order_by(Product.category, Product.name)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Product]:
        result = await self.db.execute(select(Product).order_by(Product.category, Product.name))
        return list(result.scalars().all())

    async def create_product(
        self,
        name: str,
        price: int,
        stock_quantity: int,
        description: str | None = None,
        category: str | None = None,
    ) -> Product:
        """Add a product. It starts on sale only when it has stock."""
        name = self._validate(name, price)
        if stock_quantity is None or stock_quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")

        product = Product(
            name=name,
            description=description,
            price=price,
            category=category or DEFAULT_CATEGORY,
            stock_quantity=stock_quantity,
            initial_stock=stock_quantity,
            is_active=stock_quantity > 0,
        )
        try:
            self.db.add(product)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to create product {name}: {exc}")
            raise InternalError("Failed to create product") from exc

        await self.db.refresh(product)
        logger.info(f"Created product {product.id} ({name}) price={price} stock={stock_quantity}")
        return product

    async def update_product(
        self,
        product_id: int,
        name: str,
        price: int,
        description: str | None = None,
        category: str | None = None,
        stock_quantity: int | None = None,
    ) -> Product:
        """Edit product details; a supplied stock level replaces the current one."""
        name = self._validate(name, price)
        try:
            product = await self.get_product(product_id)
            product.name = name
            product.description = description
            product.price = price
            product.category = category or DEFAULT_CATEGORY
            await self.db.flush()
            if stock_quantity is not None:
                await self.stock.set_stock(product_id, stock_quantity)
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to update product {product_id}: {exc}")
            raise InternalError("Failed to update product") from exc

        logger.info(f"Updated product {product_id}")
        return await self.get_product(product_id)

    async def set_active(self, product_id: int, is_active: bool) -> Product:
        """Put a product on or off sale. Products without stock stay off."""
        try:
            product = await self.get_product(product_id)
            if is_active and product.stock_quantity <= 0:
                raise ConflictError("Cannot activate a product with no stock")
            product.is_active = is_active
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise InternalError("Failed to update product status") from exc

        logger.info(f"Product {product_id} {'activated' if is_active else 'deactivated'}")
        return product

    async def adjust_stock(self, product_id: int, mode: str, value: int) -> dict:
        """Apply an admin stock change.

        Args:
            product_id: Product to change.
            mode: ``"set"`` for an absolute level, ``"adjust"`` for a signed delta.
            value: The level or delta.
        """
        if mode not in self.STOCK_MODES:
            raise ValidationError("Adjustment type must be 'set' or 'adjust'")
        if value is None:
            raise ValidationError("Stock value is required")

        try:
            if mode == "set":
                stock = await self.stock.set_stock(product_id, value)
            else:
                stock = await self.stock.adjust_stock(product_id, value)
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to adjust stock for product {product_id}: {exc}")
            raise InternalError("Failed to adjust stock") from exc

        return {"success": True, "product_id": product_id, "new_stock": stock["stock_quantity"],
                "is_active": stock["is_active"]}

    async def delete_product(self, product_id: int) -> None:
        """Remove a product nobody has ordered, received or been given."""
        try:
            product = await self.get_product(product_id)
            for model in (Order, Donation, TeamInventory):
                referenced = await self.db.execute(
                    select(model.id).where(model.product_id == product_id).limit(1)
                )
                if referenced.scalar_one_or_none() is not None:
                    raise ConflictError("Cannot delete product that has been ordered")
            await self.db.delete(product)
            await self.db.commit()
        except LedgerError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to delete product {product_id}: {exc}")
            raise InternalError("Failed to delete product") from exc

        logger.info(f"Deleted product {product_id}")

    @staticmethod
    def _validate(name: str | None, price: int | None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Product name is required")
        if price is None or price <= 0:
            raise ValidationError("Price must be positive")
        return name
