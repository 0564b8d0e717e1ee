"""Database models."""
from retreat_store.models.user import User
from retreat_store.models.team import Team
from retreat_store.models.product import Product
from retreat_store.models.order import Order
from retreat_store.models.transaction import Transaction
from retreat_store.models.money_code import MoneyCode
from retreat_store.models.team_inventory import TeamInventory, TeamInventoryMovement
from retreat_store.models.donation import Donation

__all__ = [
    "User",
    "Team",
    "Product",
    "Order",
    "Transaction",
    "MoneyCode",
    "TeamInventory",
    "TeamInventoryMovement",
    "Donation",
]
