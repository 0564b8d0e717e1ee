"""Schemas for the logged-in user's own views."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from retreat_store.schemas.auth import SessionUser
from retreat_store.schemas.base import BaseSchema


class RedeemCodeRequest(BaseModel):
    code: Optional[str] = None


class RedeemCodeResponse(BaseSchema):
    success: bool = True
    amount: int
    new_balance: int


class TransactionOut(BaseSchema):
    id: int
    user_id: int
    username: str
    type: str
    amount: int
    description: Optional[str] = None
    reference_id: Optional[int] = None
    created_at: datetime


class DashboardResponse(BaseSchema):
    user: SessionUser
    transactions: list[TransactionOut]


class TeamSummary(BaseSchema):
    team_id: int
    team_name: str
    total_earned: int
    total_spent: int
    total_donated: int
    total_received: int
    current_balance: int
