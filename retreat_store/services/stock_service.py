"""Stock lifecycle: atomic stock changes with automatic (de)activation."""
import logging

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.models.product import Product
from retreat_store.utils.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class StockService:
    """Mutates ``products.stock_quantity`` and keeps ``is_active`` in step.

    A product is deactivated whenever its stock reaches zero and reactivated
    when stock is raised from zero. Every change is one conditional UPDATE;
    nothing here reads stock and writes it back. Methods do not commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_product(self, product_id: int) -> Product:
        """Load a product that is on sale, or raise ``NotFoundError``."""
        result = await self.db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if not product or not product.is_active:
            raise NotFoundError("Product not found or unavailable")
        return product

    async def reserve(self, product_id: int, quantity: int) -> int:
        """Take ``quantity`` units out of stock.

        Returns:
            Remaining stock. Zero means the product was just deactivated.

        Raises:
            InsufficientStockError: If the product is inactive or short.
        """
        new_stock = Product.stock_quantity - quantity
        result = await self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.is_active.is_(True),
                Product.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=new_stock,
                is_active=case((new_stock <= 0, False), else_=Product.is_active),
            )
            .returning(Product.stock_quantity)
        )
        remaining = result.scalar_one_or_none()
        if remaining is None:
            raise InsufficientStockError()

        if remaining <= 0:
            logger.info(f"Product {product_id} sold out and deactivated")
        return remaining

    async def set_stock(self, product_id: int, value: int) -> dict:
        """Overwrite stock with an absolute value."""
        if value is None or value < 0:
            raise ValidationError("Stock cannot be negative")

        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=value, is_active=value > 0)
            .returning(Product.stock_quantity, Product.is_active)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Product not found")

        logger.info(f"Stock for product {product_id} set to {value}")
        return {"stock_quantity": row.stock_quantity, "is_active": row.is_active}

    async def adjust_stock(self, product_id: int, delta: int) -> dict:
        """Add a signed delta to stock.

        Raising stock from zero reactivates the product; dropping it to zero
        deactivates it. Any other change leaves the flag alone.
        """
        if delta is None:
            raise ValidationError("Stock adjustment is required")

        new_stock = Product.stock_quantity + delta
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id, new_stock >= 0)
            .values(
                stock_quantity=new_stock,
                is_active=case(
                    (new_stock <= 0, False),
                    (Product.stock_quantity <= 0, True),
                    else_=Product.is_active,
                ),
            )
            .returning(Product.stock_quantity, Product.is_active)
        )
        row = result.one_or_none()
        if row is None:
            exists = await self.db.execute(select(Product.id).where(Product.id == product_id))
            if exists.scalar_one_or_none() is None:
                raise NotFoundError("Product not found")
            raise ValidationError("Stock cannot be negative")

        logger.info(f"Stock for product {product_id} adjusted by {delta} to {row.stock_quantity}")
        return {"stock_quantity": row.stock_quantity, "is_active": row.is_active}
