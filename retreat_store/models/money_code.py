"""One-time money code model."""
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey
from datetime import datetime, UTC
from retreat_store.database import Base


class MoneyCode(Base):
    """Redeemable code. ``used_by`` is written exactly once."""
    __tablename__ = "money_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(64), unique=True, nullable=False)
    amount = Column(Integer, nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    used_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<MoneyCode(code={self.code}, amount={self.amount}, used_by={self.used_by})>"
