"""Admin console schemas."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from retreat_store.schemas.base import BaseSchema

RoleStr = Literal["admin", "team_leader", "participant"]


class UserOut(BaseSchema):
    id: int
    username: str
    role: str
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    balance: int
    created_at: datetime


class CreateUserRequest(BaseModel):
    username: str
    password: str
    role: RoleStr = "participant"
    team_id: Optional[int] = None


class UpdateUserRequest(BaseModel):
    """Only fields present in the payload are changed; ``team_id: null`` removes the team."""

    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[RoleStr] = None
    team_id: Optional[int] = None
    balance: Optional[int] = None


class TeamOut(BaseSchema):
    id: int
    name: str
    leader_id: Optional[int] = None
    leader_name: Optional[str] = None
    member_count: int


class AssignLeaderRequest(BaseModel):
    user_id: int


class GenerateCodesRequest(BaseModel):
    amount: int
    quantity: int = 1


class GenerateCodesResponse(BaseSchema):
    success: bool = True
    generated: int
    amount: int
    codes: list[str]


class MoneyCodeOut(BaseSchema):
    id: int
    code: str
    amount: int
    used: bool
    used_by: Optional[int] = None
    used_by_username: Optional[str] = None
    created_at: datetime
    used_at: Optional[datetime] = None


class ProductRequest(BaseModel):
    name: str
    description: Optional[str] = None
    price: int
    category: Optional[str] = None
    stock_quantity: Optional[int] = None


class ProductStatusRequest(BaseModel):
    is_active: bool


class StockAdjustRequest(BaseModel):
    adjustment_type: Literal["set", "adjust"] = Field(default="adjust")
    value: int


class StockAdjustResponse(BaseSchema):
    success: bool = True
    product_id: int
    new_stock: int
    is_active: bool


class DonationOut(BaseSchema):
    id: int
    donor_id: int
    donor_username: str
    recipient_id: Optional[int] = None
    product_id: int
    product_name: str
    amount: int
    quantity: int
    message: str
    donor_team_name: str
    recipient_team_name: str
    created_at: datetime


class RankingEntry(BaseSchema):
    team_id: int
    team_name: str
    total_earned: int
    total_spent: int
    total_donated: int
    current_balance: int
    member_count: int
    donation_score: int
