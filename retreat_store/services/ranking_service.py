"""Team rankings and financial summaries derived from the ledger."""
import logging
import math

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.models.base import TransactionType
from retreat_store.models.donation import Donation
from retreat_store.models.team import Team
from retreat_store.models.transaction import Transaction
from retreat_store.models.user import User
from retreat_store.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def calculate_donation_score(total_donated: int, total_earned: int) -> int:
    """Percentage of earnings given away, rounded half up; 0 without earnings."""
    if total_earned <= 0:
        return 0
    return math.floor(total_donated / total_earned * 100 + 0.5)


class RankingService:
    """Read-only projections over transactions. Nothing is cached."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _ledger_totals(earned_types: list[str]):
        """Per-team sums of member transactions, one row per team."""

        def _sum_where(condition, value):
            return func.coalesce(func.sum(case((condition, value), else_=0)), 0)

        return (
            select(
                User.team_id.label("team_id"),
                _sum_where(Transaction.type.in_(earned_types), Transaction.amount).label("total_earned"),
                _sum_where(
                    Transaction.type == TransactionType.PURCHASE.value, func.abs(Transaction.amount)
                ).label("total_spent"),
                _sum_where(
                    Transaction.type == TransactionType.DONATION_SENT.value, func.abs(Transaction.amount)
                ).label("total_donated"),
            )
            .join(Transaction, Transaction.user_id == User.id)
            .where(User.team_id.is_not(None))
            .group_by(User.team_id)
            .subquery()
        )

    @staticmethod
    def _member_totals():
        # Kept apart from the ledger join so balances are not summed once per transaction
        return (
            select(
                User.team_id.label("team_id"),
                func.count(User.id).label("member_count"),
                func.coalesce(func.sum(User.balance), 0).label("current_balance"),
            )
            .where(User.team_id.is_not(None))
            .group_by(User.team_id)
            .subquery()
        )

    async def team_rankings(self) -> list[dict]:
        """Every team with its ledger totals, best donation score first.

        ``total_earned`` counts code redemptions and donations received.
        Ties keep alphabetical team order.
        """
        ledger = self._ledger_totals(
            [TransactionType.EARN.value, TransactionType.DONATION_RECEIVED.value]
        )
        members = self._member_totals()
        result = await self.db.execute(
            select(
                Team.id,
                Team.name,
                func.coalesce(ledger.c.total_earned, 0),
                func.coalesce(ledger.c.total_spent, 0),
                func.coalesce(ledger.c.total_donated, 0),
                func.coalesce(members.c.current_balance, 0),
                func.coalesce(members.c.member_count, 0),
            )
            .outerjoin(ledger, ledger.c.team_id == Team.id)
            .outerjoin(members, members.c.team_id == Team.id)
            .order_by(Team.name)
        )

        rankings = [
            {
                "team_id": team_id,
                "team_name": name,
                "total_earned": int(earned),
                "total_spent": int(spent),
                "total_donated": int(donated),
                "current_balance": int(balance),
                "member_count": int(member_count),
                "donation_score": calculate_donation_score(int(donated), int(earned)),
            }
            for team_id, name, earned, spent, donated, balance, member_count in result.all()
        ]
        rankings.sort(key=lambda row: row["donation_score"], reverse=True)
        return rankings

    async def team_summary(self, team_id: int) -> dict:
        """Financial overview for one team.

        Here ``total_earned`` counts code redemptions only, and
        ``total_received`` is the store value of goods donated to the team.
        """
        team_result = await self.db.execute(select(Team.name).where(Team.id == team_id))
        team_name = team_result.scalar_one_or_none()
        if team_name is None:
            raise NotFoundError("Team not found")

        ledger = self._ledger_totals([TransactionType.EARN.value])
        totals_result = await self.db.execute(
            select(ledger.c.total_earned, ledger.c.total_spent, ledger.c.total_donated)
            .where(ledger.c.team_id == team_id)
        )
        totals = totals_result.one_or_none()
        earned, spent, donated = (int(value) for value in totals) if totals else (0, 0, 0)

        received_result = await self.db.execute(
            select(func.coalesce(func.sum(Donation.amount), 0))
            .where(Donation.recipient_team_id == team_id)
        )
        balance_result = await self.db.execute(
            select(func.coalesce(func.sum(User.balance), 0)).where(User.team_id == team_id)
        )

        return {
            "team_id": team_id,
            "team_name": team_name,
            "total_earned": earned,
            "total_spent": spent,
            "total_donated": donated,
            "total_received": int(received_result.scalar_one()),
            "current_balance": int(balance_result.scalar_one()),
        }
