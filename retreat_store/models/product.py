"""Store product model."""
from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text, CheckConstraint
from datetime import datetime, UTC
from retreat_store.database import Base


class Product(Base):
    """Product sold from the shared store.

    ``is_active`` tracks stock: it is cleared whenever ``stock_quantity`` drops
    to zero and set again when stock is raised from zero.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)
    category = Column(String(50), default="item", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    initial_stock = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name={self.name}, price={self.price}, stock={self.stock_quantity})>"
