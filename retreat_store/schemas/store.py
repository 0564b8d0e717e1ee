"""Store, purchase and donation schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from retreat_store.schemas.base import BaseSchema


class ProductOut(BaseSchema):
    id: int
    name: str
    description: Optional[str] = None
    price: int
    category: str
    is_active: bool
    stock_quantity: int
    initial_stock: int
    created_at: datetime


class PurchaseRequest(BaseModel):
    product_id: Optional[int] = None
    quantity: int = 1


class PurchaseResponse(BaseSchema):
    success: bool = True
    order_id: int
    new_balance: int
    total_price: int
    sold_out: bool
    message: str


class DonateRequest(BaseModel):
    recipient_team_id: Optional[int] = None
    product_id: Optional[int] = None
    quantity: int = 1
    message: Optional[str] = Field(default=None, max_length=500)


class DonateResponse(BaseSchema):
    success: bool = True
    donation_id: int
    new_balance: int
    total_cost: int
    message: str


class OrderOut(BaseSchema):
    id: int
    user_id: int
    username: str
    team_id: int
    team_name: str
    product_id: int
    product_name: str
    quantity: int
    total_price: int
    status: str
    verified: bool
    created_at: datetime


class TeamOption(BaseSchema):
    id: int
    name: str


class InventoryItem(BaseSchema):
    product_id: int
    product_name: str
    category: str
    price: int
    quantity: int
    obtained_from: str
    reference_id: Optional[int] = None
    obtained_at: datetime
