"""User account model."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from datetime import datetime, UTC
from retreat_store.database import Base
from retreat_store.models.base import UserRole


class User(Base):
    """Retreat account. ``balance`` is a cache of the user's ledger entries."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(80), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default=UserRole.PARTICIPANT.value, nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", use_alter=True, name="fk_users_team_id_teams"), nullable=True, index=True)
    balance = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role}, balance={self.balance})>"
