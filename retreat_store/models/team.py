"""Team model."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from datetime import datetime, UTC
from retreat_store.database import Base


class Team(Base):
    """A retreat group. ``leader_id`` points at the team's single team_leader."""
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    leader_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_teams_leader_id_users"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return f"<Team(id={self.id}, name={self.name}, leader_id={self.leader_id})>"
