"""
Tests for InventoryService - additive team inventory.
"""

import pytest
from sqlalchemy import func, select

from retreat_store.models import TeamInventory
from retreat_store.services.inventory_service import InventoryService
from retreat_store.utils.exceptions import ValidationError


@pytest.mark.asyncio
async def test_contributions_accumulate_in_one_row(db_session, team_factory, product_factory):
    team = await team_factory()
    product = await product_factory()
    team_id, product_id = team.id, product.id
    inventory = InventoryService(db_session)

    assert await inventory.add_to_team(team_id, product_id, 2, "purchase", reference_id=1) == 2
    assert await inventory.add_to_team(team_id, product_id, 4, "donation", reference_id=7) == 6
    await db_session.commit()

    rows = (await db_session.execute(
        select(TeamInventory).execution_options(populate_existing=True)
    )).scalars().all()
    assert len(rows) == 1
    assert rows[0].quantity == 6
    # The row carries the latest contribution's provenance
    assert rows[0].obtained_from == "donation"
    assert rows[0].reference_id == 7

    movements = await inventory.movements(team_id)
    assert [(m.quantity, m.obtained_from, m.reference_id) for m in movements] == [
        (2, "purchase", 1),
        (4, "donation", 7),
    ]


@pytest.mark.asyncio
async def test_teams_are_kept_apart(db_session, team_factory, product_factory):
    first, second = await team_factory(), await team_factory()
    product = await product_factory()
    inventory = InventoryService(db_session)

    await inventory.add_to_team(first.id, product.id, 3, "purchase")
    await inventory.add_to_team(second.id, product.id, 1, "purchase")
    await db_session.commit()

    assert await inventory.get_quantity(first.id, product.id) == 3
    assert await inventory.get_quantity(second.id, product.id) == 1
    assert (await db_session.execute(select(func.count(TeamInventory.id)))).scalar_one() == 2


@pytest.mark.asyncio
async def test_team_inventory_view(db_session, team_factory, product_factory):
    team = await team_factory()
    coffee = await product_factory(name="Coffee", category="beverage", price=500)
    snacks = await product_factory(name="Snacks", category="food", price=300)
    inventory = InventoryService(db_session)

    await inventory.add_to_team(team.id, snacks.id, 1, "purchase")
    await inventory.add_to_team(team.id, coffee.id, 2, "donation")
    await db_session.commit()

    held = await inventory.team_inventory(team.id)

    assert [(item["product_name"], item["quantity"]) for item in held] == [("Coffee", 2), ("Snacks", 1)]
    assert held[0]["price"] == 500


@pytest.mark.asyncio
async def test_empty_inventory(db_session, team_factory):
    team = await team_factory()
    assert await InventoryService(db_session).team_inventory(team.id) == []
    assert await InventoryService(db_session).get_quantity(team.id, 1) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity, source", [(0, "purchase"), (-2, "purchase"), (1, "gift")])
async def test_rejects_bad_input(db_session, team_factory, product_factory, quantity, source):
    team = await team_factory()
    product = await product_factory()

    with pytest.raises(ValidationError):
        await InventoryService(db_session).add_to_team(team.id, product.id, quantity, source)
