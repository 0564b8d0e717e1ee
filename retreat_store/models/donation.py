"""Donation audit record."""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text
from datetime import datetime, UTC
from retreat_store.database import Base


class Donation(Base):
    """Goods bought by one team and delivered into another team's inventory."""
    __tablename__ = "donations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    donor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # Recipient team leader, if any
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    amount = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    message = Column(Text, default="", nullable=False)
    donor_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    recipient_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return (f"<Donation(id={self.id}, donor_team_id={self.donor_team_id}, "
                f"recipient_team_id={self.recipient_team_id}, quantity={self.quantity})>")
