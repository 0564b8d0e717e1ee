"""Transaction ledger model."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, Text
from datetime import datetime, UTC
from retreat_store.database import Base


class Transaction(Base):
    """Append-only ledger entry."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    # Types: earn, purchase, admin_adjustment, donation_sent, donation_received
    amount = Column(Integer, nullable=False)  # Negative for purchases and donations sent
    description = Column(Text, nullable=True)
    reference_id = Column(Integer, nullable=True, index=True)  # Order or donation id
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False, index=True)

    __table_args__ = (
        Index('ix_transactions_user_created', 'user_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Transaction(id={self.id}, amount={self.amount}, type={self.type})>"
