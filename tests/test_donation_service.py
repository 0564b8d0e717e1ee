"""
Tests for DonationService - buying goods for another team.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from retreat_store.models import Donation, Transaction
from retreat_store.models.base import UserRole
from retreat_store.services.donation_service import DonationService
from retreat_store.services.inventory_service import InventoryService
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
async def donor_team(team_factory):
    return await team_factory("Donors")


@pytest.fixture
async def recipient_team(team_factory):
    return await team_factory("Recipients")


@pytest.fixture
async def donor(user_factory, donor_team):
    return await user_factory(role=UserRole.TEAM_LEADER.value, team=donor_team, balance=1000)


@pytest.fixture
async def recipient_leader(user_factory, recipient_team):
    return await user_factory(role=UserRole.TEAM_LEADER.value, team=recipient_team)


class TestDonate:
    """Successful donations."""

    @pytest.mark.asyncio
    async def test_donation_moves_goods_and_money(
        self, db_session, donor, recipient_leader, donor_team, recipient_team, product_factory
    ):
        donor_id, leader_id = donor.id, recipient_leader.id
        donor_team_id, recipient_team_id = donor_team.id, recipient_team.id
        product = await product_factory(name="Snacks", price=100, stock=5)
        product_id = product.id

        result = await DonationService(db_session).donate(
            donor, recipient_team_id, product_id, 2, "Enjoy"
        )

        assert result["success"] is True
        assert result["new_balance"] == 800
        assert result["total_cost"] == 200
        assert result["message"] == "Successfully donated 2 Snacks(s) to Recipients"

        transactions = TransactionService(db_session)
        assert await transactions.get_balance(donor_id) == 800
        # The recipient gains goods, not money
        assert await transactions.get_balance(leader_id) == 0

        donation = (await db_session.execute(select(Donation))).scalar_one()
        assert donation.id == result["donation_id"]
        assert donation.donor_id == donor_id
        assert donation.recipient_id == leader_id
        assert donation.amount == 200 and donation.quantity == 2
        assert donation.message == "Enjoy"
        assert (donation.donor_team_id, donation.recipient_team_id) == (donor_team_id, recipient_team_id)

        inventory = InventoryService(db_session)
        assert await inventory.get_quantity(recipient_team_id, product_id) == 2
        assert await inventory.get_quantity(donor_team_id, product_id) == 0
        held = await inventory.team_inventory(recipient_team_id)
        assert held[0]["obtained_from"] == "donation"
        assert held[0]["reference_id"] == donation.id

        await db_session.refresh(product)
        assert product.stock_quantity == 3

    @pytest.mark.asyncio
    async def test_ledger_entries_for_both_sides(
        self, db_session, donor, recipient_leader, recipient_team, product_factory
    ):
        donor_id, leader_id = donor.id, recipient_leader.id
        product = await product_factory(name="Coffee", price=50)

        result = await DonationService(db_session).donate(donor, recipient_team.id, product.id, 3)

        entries = (await db_session.execute(
            select(Transaction).order_by(Transaction.id)
        )).scalars().all()
        assert [(e.user_id, e.type, e.amount) for e in entries] == [
            (donor_id, "donation_sent", -150),
            (leader_id, "donation_received", 0),
        ]
        assert all(e.reference_id == result["donation_id"] for e in entries)
        assert entries[0].description == "Donated 3 Coffee(s) to Recipients"
        assert entries[1].description == "Received 3 Coffee(s) from team Donors"

    @pytest.mark.asyncio
    async def test_recipient_team_without_leader(self, db_session, donor, team_factory, product_factory):
        leaderless = await team_factory()
        leaderless_id = leaderless.id
        product = await product_factory(price=10)

        result = await DonationService(db_session).donate(donor, leaderless_id, product.id, 1)

        donation = (await db_session.execute(select(Donation))).scalar_one()
        assert donation.id == result["donation_id"]
        assert donation.recipient_id is None
        types = (await db_session.execute(select(Transaction.type))).scalars().all()
        assert types == ["donation_sent"]

    @pytest.mark.asyncio
    async def test_failed_receipt_keeps_donation(
        self, db_session, donor, recipient_leader, recipient_team, product_factory, monkeypatch
    ):
        donor_id, recipient_team_id = donor.id, recipient_team.id
        product = await product_factory(price=100, stock=5)
        product_id = product.id
        record = TransactionService.record

        async def record_without_receipts(self, user_id, trans_type, *args, **kwargs):
            if trans_type == TransactionService.DONATION_RECEIVED:
                raise OperationalError("INSERT INTO transactions", {}, Exception("database is locked"))
            return await record(self, user_id, trans_type, *args, **kwargs)

        monkeypatch.setattr(TransactionService, "record", record_without_receipts)

        result = await DonationService(db_session).donate(donor, recipient_team_id, product_id, 2)

        assert result["success"] is True
        assert result["new_balance"] == 800
        assert await TransactionService(db_session).get_balance(donor_id) == 800
        donation = (await db_session.execute(select(Donation))).scalar_one()
        assert donation.id == result["donation_id"]
        assert await InventoryService(db_session).get_quantity(recipient_team_id, product_id) == 2
        await db_session.refresh(product)
        assert product.stock_quantity == 3
        types = (await db_session.execute(select(Transaction.type))).scalars().all()
        assert types == ["donation_sent"]


class TestDonateRejections:
    """Failed donations leave no trace."""

    async def _assert_untouched(self, db_session, donor_id, balance):
        assert await TransactionService(db_session).get_balance(donor_id) == balance
        assert (await db_session.execute(select(func.count(Donation.id)))).scalar_one() == 0
        assert (await db_session.execute(select(func.count(Transaction.id)))).scalar_one() == 0

    @pytest.mark.asyncio
    async def test_cannot_donate_to_own_team(self, db_session, donor, donor_team, product_factory):
        product = await product_factory()

        with pytest.raises(ValidationError, match="Cannot donate to your own team"):
            await DonationService(db_session).donate(donor, donor_team.id, product.id, 1)

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, donor, recipient_team, product_factory):
        donor_id, recipient_team_id = donor.id, recipient_team.id
        product = await product_factory(price=600, stock=5)
        product_id = product.id

        with pytest.raises(InsufficientBalanceError):
            await DonationService(db_session).donate(donor, recipient_team_id, product_id, 2)

        await self._assert_untouched(db_session, donor_id, 1000)
        await db_session.refresh(product)
        assert product.stock_quantity == 5
        assert await InventoryService(db_session).get_quantity(recipient_team_id, product_id) == 0

    @pytest.mark.asyncio
    async def test_failure_after_writes_rolls_back(
        self, db_session, donor, recipient_leader, recipient_team, product_factory, monkeypatch
    ):
        donor_id, recipient_team_id = donor.id, recipient_team.id
        product = await product_factory(price=100, stock=5)
        product_id = product.id

        async def fail_add_to_team(*args, **kwargs):
            raise OperationalError("INSERT INTO team_inventory", {}, Exception("disk I/O error"))

        monkeypatch.setattr(InventoryService, "add_to_team", fail_add_to_team)

        with pytest.raises(InternalError, match="Donation failed"):
            await DonationService(db_session).donate(donor, recipient_team_id, product_id, 2)

        # Debit, stock reservation and the donation row were already flushed
        await self._assert_untouched(db_session, donor_id, 1000)
        await db_session.refresh(product)
        assert product.stock_quantity == 5
        assert await InventoryService(db_session).get_quantity(recipient_team_id, product_id) == 0

    @pytest.mark.asyncio
    async def test_insufficient_stock(self, db_session, donor, recipient_team, product_factory):
        donor_id = donor.id
        product = await product_factory(price=10, stock=1)

        with pytest.raises(InsufficientStockError):
            await DonationService(db_session).donate(donor, recipient_team.id, product.id, 5)

        await self._assert_untouched(db_session, donor_id, 1000)
        await db_session.refresh(product)
        assert product.stock_quantity == 1

    @pytest.mark.asyncio
    async def test_missing_recipient_team(self, db_session, donor, product_factory):
        donor_id = donor.id
        product = await product_factory()

        with pytest.raises(NotFoundError, match="Recipient team not found"):
            await DonationService(db_session).donate(donor, 9999, product.id, 1)

        await self._assert_untouched(db_session, donor_id, 1000)

    @pytest.mark.asyncio
    async def test_participant_cannot_donate(
        self, db_session, user_factory, donor_team, recipient_team, product_factory
    ):
        participant = await user_factory(role=UserRole.PARTICIPANT.value, team=donor_team, balance=1000)
        product = await product_factory()

        with pytest.raises(AuthorizationError):
            await DonationService(db_session).donate(participant, recipient_team.id, product.id, 1)

    @pytest.mark.asyncio
    async def test_missing_fields(self, db_session, donor, recipient_team):
        with pytest.raises(ValidationError):
            await DonationService(db_session).donate(donor, recipient_team.id, None, 1)


@pytest.mark.asyncio
async def test_recipient_teams_exclude_own(db_session, donor, donor_team, recipient_team, team_factory):
    third = await team_factory("Third")
    options = await DonationService(db_session).list_recipient_teams(donor)

    names = [option["name"] for option in options]
    assert names == ["Recipients", "Third"]
    assert donor_team.name not in names
    assert third.id in [option["id"] for option in options]


@pytest.mark.asyncio
async def test_list_donations(db_session, donor, recipient_leader, recipient_team, product_factory):
    donor_name = donor.username
    product = await product_factory(name="Souvenir", price=100)
    await DonationService(db_session).donate(donor, recipient_team.id, product.id, 1, "hi")

    rows = await DonationService(db_session).list_donations()

    assert len(rows) == 1
    assert rows[0]["donor_username"] == donor_name
    assert rows[0]["donor_team_name"] == "Donors"
    assert rows[0]["recipient_team_name"] == "Recipients"
    assert rows[0]["product_name"] == "Souvenir"
