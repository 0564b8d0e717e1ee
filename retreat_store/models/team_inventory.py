"""Team inventory models."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, Index
from datetime import datetime, UTC
from retreat_store.database import Base


class TeamInventory(Base):
    """Running total of a product held by a team.

    One row per (team, product). ``obtained_from`` and ``reference_id`` describe
    the most recent contribution only; see ``TeamInventoryMovement``.
    """
    __tablename__ = "team_inventory"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    obtained_from = Column(String(20), nullable=False)
    reference_id = Column(Integer, nullable=True)
    obtained_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        UniqueConstraint('team_id', 'product_id', name='uq_team_inventory_team_product'),
    )

    def __repr__(self):
        return f"<TeamInventory(team_id={self.team_id}, product_id={self.product_id}, quantity={self.quantity})>"


class TeamInventoryMovement(Base):
    """Append-only record of each inventory contribution."""
    __tablename__ = "team_inventory_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    obtained_from = Column(String(20), nullable=False)
    reference_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index('ix_team_inventory_movements_team_product', 'team_id', 'product_id'),
    )
