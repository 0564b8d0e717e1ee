"""Store order model."""
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, Index
from datetime import datetime, UTC
from retreat_store.database import Base
from retreat_store.models.base import OrderStatus


class Order(Base):
    """A purchase. ``total_price`` is the price snapshot at purchase time."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)
    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index('ix_orders_team_created', 'team_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, product_id={self.product_id}, quantity={self.quantity}, status={self.status})>"
