"""
Tests for RankingService - donation scores and team summaries.
"""

import pytest

from retreat_store.models.base import UserRole
from retreat_store.services import (
    DonationService,
    MoneyCodeService,
    PurchaseService,
    RankingService,
    calculate_donation_score,
)
from retreat_store.utils.exceptions import NotFoundError


@pytest.mark.parametrize(
    "donated, earned, expected",
    [
        (200, 1000, 20),
        (0, 1000, 0),
        (500, 0, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 200, 1),  # 0.5 rounds up
        (1000, 1000, 100),
    ],
)
def test_calculate_donation_score(donated, earned, expected):
    assert calculate_donation_score(donated, earned) == expected


@pytest.fixture
async def league(db_session, user_factory, team_factory, product_factory):
    """Three teams: Alpha earns 1000 and donates 200 to Bravo, Bravo earns 500, Charlie is idle."""
    alpha = await team_factory("Alpha")
    bravo = await team_factory("Bravo")
    charlie = await team_factory("Charlie")
    admin = await user_factory(role=UserRole.ADMIN.value)
    alpha_leader = await user_factory(role=UserRole.TEAM_LEADER.value, team=alpha)
    bravo_leader = await user_factory(role=UserRole.TEAM_LEADER.value, team=bravo)
    await user_factory(role=UserRole.PARTICIPANT.value, team=alpha)
    product = await product_factory(price=100, stock=20)

    codes = MoneyCodeService(db_session)
    await codes.redeem(alpha_leader, (await codes.generate(admin, 1000))["codes"][0])
    await codes.redeem(bravo_leader, (await codes.generate(admin, 500))["codes"][0])

    await DonationService(db_session).donate(alpha_leader, bravo.id, product.id, 2)
    await PurchaseService(db_session).purchase(bravo_leader, product.id, 1)

    return {"alpha": alpha.id, "bravo": bravo.id, "charlie": charlie.id}


@pytest.mark.asyncio
async def test_team_rankings(db_session, league):
    rankings = await RankingService(db_session).team_rankings()

    assert [row["team_name"] for row in rankings] == ["Alpha", "Bravo", "Charlie"]
    alpha, bravo, charlie = rankings

    assert alpha["total_earned"] == 1000
    assert alpha["total_donated"] == 200
    assert alpha["total_spent"] == 0
    assert alpha["current_balance"] == 800
    assert alpha["member_count"] == 2
    assert alpha["donation_score"] == 20

    assert bravo["total_earned"] == 500
    assert bravo["total_spent"] == 100
    assert bravo["current_balance"] == 400
    assert bravo["donation_score"] == 0

    assert charlie["total_earned"] == 0
    assert charlie["member_count"] == 0
    assert charlie["donation_score"] == 0


@pytest.mark.asyncio
async def test_ties_keep_name_order(db_session, team_factory):
    for name in ("Zulu", "Echo", "Mike"):
        await team_factory(name)

    rankings = await RankingService(db_session).team_rankings()

    assert [row["team_name"] for row in rankings] == ["Echo", "Mike", "Zulu"]


@pytest.mark.asyncio
async def test_team_summary(db_session, league):
    service = RankingService(db_session)

    alpha = await service.team_summary(league["alpha"])
    assert alpha["total_earned"] == 1000
    assert alpha["total_donated"] == 200
    assert alpha["total_received"] == 0
    assert alpha["current_balance"] == 800

    bravo = await service.team_summary(league["bravo"])
    assert bravo["total_earned"] == 500
    assert bravo["total_spent"] == 100
    assert bravo["total_received"] == 200
    assert bravo["current_balance"] == 400


@pytest.mark.asyncio
async def test_team_summary_unknown_team(db_session):
    with pytest.raises(NotFoundError):
        await RankingService(db_session).team_summary(999)
