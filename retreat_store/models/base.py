"""Shared enumerations for the ledger models."""
from enum import Enum


class UserRole(str, Enum):
    """Account roles."""
    ADMIN = "admin"
    TEAM_LEADER = "team_leader"
    PARTICIPANT = "participant"


class TransactionType(str, Enum):
    """Ledger entry types. Debits carry negative amounts."""
    EARN = "earn"
    PURCHASE = "purchase"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    DONATION_SENT = "donation_sent"
    DONATION_RECEIVED = "donation_received"


class OrderStatus(str, Enum):
    """Order status enumeration for type safety."""
    PENDING = "pending"
    VERIFIED = "verified"


class InventorySource(str, Enum):
    """How a team acquired inventory."""
    PURCHASE = "purchase"
    DONATION = "donation"


# Roles allowed to spend team money
SPENDING_ROLES = frozenset({UserRole.ADMIN.value, UserRole.TEAM_LEADER.value})
