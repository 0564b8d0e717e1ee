"""
Tests for PurchaseService - atomic store purchases.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from retreat_store.models import Order, Product, Transaction
from retreat_store.models.base import UserRole
from retreat_store.services.inventory_service import InventoryService
from retreat_store.services.purchase_service import PurchaseService
from retreat_store.services.transaction_service import TransactionService
from retreat_store.utils.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InsufficientStockError,
    InternalError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
async def team(team_factory):
    return await team_factory()


@pytest.fixture
async def leader(user_factory, team):
    return await user_factory(role=UserRole.TEAM_LEADER.value, team=team, balance=1000)


async def _count(db_session, model) -> int:
    return (await db_session.execute(select(func.count(model.id)))).scalar_one()


class TestPurchase:
    """Successful purchases."""

    @pytest.mark.asyncio
    async def test_purchase_updates_every_table(self, db_session, leader, team, product_factory):
        leader_id, team_id = leader.id, team.id
        product = await product_factory(price=100, stock=5)
        product_id = product.id

        result = await PurchaseService(db_session).purchase(leader, product_id, 2)

        assert result["success"] is True
        assert result["new_balance"] == 800
        assert result["total_price"] == 200
        assert result["sold_out"] is False
        assert result["message"] == "Purchase successful!"

        assert await TransactionService(db_session).get_balance(leader_id) == 800

        order = (await db_session.execute(select(Order))).scalar_one()
        assert order.id == result["order_id"]
        assert (order.user_id, order.team_id, order.product_id) == (leader_id, team_id, product_id)
        assert order.quantity == 2 and order.total_price == 200
        assert order.status == "pending" and order.verified is False

        entry = (await db_session.execute(select(Transaction))).scalar_one()
        assert entry.type == "purchase"
        assert entry.amount == -200
        assert entry.reference_id == order.id

        await db_session.refresh(product)
        assert product.stock_quantity == 3
        assert product.is_active is True

        inventory = InventoryService(db_session)
        assert await inventory.get_quantity(team_id, product_id) == 2

    @pytest.mark.asyncio
    async def test_repeat_purchases_accumulate_inventory(self, db_session, leader, team, product_factory):
        team_id = team.id
        product = await product_factory(price=100, stock=10)
        product_id = product.id
        service = PurchaseService(db_session)

        await service.purchase(leader, product_id, 2)
        second = await service.purchase(leader, product_id, 3)

        inventory = InventoryService(db_session)
        assert await inventory.get_quantity(team_id, product_id) == 5
        movements = await inventory.movements(team_id, product_id)
        assert [m.quantity for m in movements] == [2, 3]
        assert movements[-1].reference_id == second["order_id"]

    @pytest.mark.asyncio
    async def test_buying_last_units_deactivates_product(self, db_session, leader, product_factory):
        product = await product_factory(price=100, stock=2)

        result = await PurchaseService(db_session).purchase(leader, product.id, 2)

        assert result["sold_out"] is True
        assert result["message"] == "Purchase successful! (Product now sold out)"
        await db_session.refresh(product)
        assert product.stock_quantity == 0
        assert product.is_active is False

    @pytest.mark.asyncio
    async def test_admin_with_team_can_purchase(self, db_session, user_factory, team, product_factory):
        admin = await user_factory(role=UserRole.ADMIN.value, team=team, balance=500)
        product = await product_factory(price=100)

        result = await PurchaseService(db_session).purchase(admin, product.id, 1)

        assert result["new_balance"] == 400


class TestPurchaseRejections:
    """Failed purchases leave no trace."""

    async def _assert_untouched(self, db_session, leader_id, product, balance, stock):
        assert await TransactionService(db_session).get_balance(leader_id) == balance
        assert await _count(db_session, Order) == 0
        assert await _count(db_session, Transaction) == 0
        await db_session.refresh(product)
        assert product.stock_quantity == stock

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, leader, product_factory):
        leader_id = leader.id
        product = await product_factory(price=600, stock=5)

        with pytest.raises(InsufficientBalanceError, match="Insufficient balance"):
            await PurchaseService(db_session).purchase(leader, product.id, 2)

        await self._assert_untouched(db_session, leader_id, product, 1000, 5)

    @pytest.mark.asyncio
    async def test_insufficient_stock(self, db_session, leader, product_factory):
        leader_id = leader.id
        product = await product_factory(price=10, stock=1)

        with pytest.raises(InsufficientStockError, match="Insufficient stock available"):
            await PurchaseService(db_session).purchase(leader, product.id, 2)

        await self._assert_untouched(db_session, leader_id, product, 1000, 1)

    @pytest.mark.asyncio
    async def test_failure_after_writes_rolls_back(
        self, db_session, leader, team, product_factory, monkeypatch
    ):
        leader_id, team_id = leader.id, team.id
        product = await product_factory(price=100, stock=5)
        product_id = product.id

        async def fail_add_to_team(*args, **kwargs):
            raise OperationalError("INSERT INTO team_inventory", {}, Exception("disk I/O error"))

        monkeypatch.setattr(InventoryService, "add_to_team", fail_add_to_team)

        with pytest.raises(InternalError, match="Purchase failed"):
            await PurchaseService(db_session).purchase(leader, product_id, 2)

        # Debit, order, ledger entry and stock reservation were already flushed
        await self._assert_untouched(db_session, leader_id, product, 1000, 5)
        assert product.is_active is True
        assert await InventoryService(db_session).get_quantity(team_id, product_id) == 0

    @pytest.mark.asyncio
    async def test_inactive_product(self, db_session, leader, product_factory):
        product = await product_factory(stock=5, is_active=False)

        with pytest.raises(NotFoundError, match="Product not found or unavailable"):
            await PurchaseService(db_session).purchase(leader, product.id, 1)

    @pytest.mark.asyncio
    async def test_missing_product(self, db_session, leader):
        with pytest.raises(NotFoundError):
            await PurchaseService(db_session).purchase(leader, 9999, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1, None])
    async def test_invalid_quantity(self, db_session, leader, product_factory, quantity):
        product = await product_factory()

        with pytest.raises(ValidationError):
            await PurchaseService(db_session).purchase(leader, product.id, quantity)

    @pytest.mark.asyncio
    async def test_participant_cannot_purchase(self, db_session, user_factory, team, product_factory):
        participant = await user_factory(role=UserRole.PARTICIPANT.value, team=team, balance=1000)
        product = await product_factory()

        with pytest.raises(AuthorizationError, match="Only team leaders can purchase items"):
            await PurchaseService(db_session).purchase(participant, product.id, 1)

    @pytest.mark.asyncio
    async def test_buyer_without_team(self, db_session, user_factory, product_factory):
        admin = await user_factory(role=UserRole.ADMIN.value, balance=1000)
        product = await product_factory()

        with pytest.raises(ValidationError):
            await PurchaseService(db_session).purchase(admin, product.id, 1)


class TestOrders:
    """Order listings and verification."""

    @pytest.mark.asyncio
    async def test_verify_order(self, db_session, leader, product_factory):
        product = await product_factory()
        service = PurchaseService(db_session)
        order_id = (await service.purchase(leader, product.id, 1))["order_id"]

        result = await service.verify_order(order_id)

        assert result["success"] is True
        order = (await db_session.execute(
            select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        )).scalar_one()
        assert order.verified is True
        assert order.status == "verified"

    @pytest.mark.asyncio
    async def test_verify_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await PurchaseService(db_session).verify_order(12345)

    @pytest.mark.asyncio
    async def test_team_orders_include_names(self, db_session, leader, team, product_factory):
        team_id, team_name, username = team.id, team.name, leader.username
        product = await product_factory(name="Coffee")
        service = PurchaseService(db_session)
        await service.purchase(leader, product.id, 1)

        orders = await service.list_team_orders(team_id)

        assert len(orders) == 1
        assert orders[0]["username"] == username
        assert orders[0]["team_name"] == team_name
        assert orders[0]["product_name"] == "Coffee"
        assert await service.list_orders() == orders
