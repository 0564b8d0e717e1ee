"""Store endpoints: catalogue, purchases and donations."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.database import get_db
from retreat_store.dependencies import get_current_user
from retreat_store.models.user import User
from retreat_store.schemas.store import (
    DonateRequest,
    DonateResponse,
    OrderOut,
    ProductOut,
    PurchaseRequest,
    PurchaseResponse,
    TeamOption,
)
from retreat_store.services import DonationService, ProductService, PurchaseService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/products", response_model=list[ProductOut])
async def list_products(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Products currently on sale."""
    return await ProductService(db).list_active()


@router.post("/purchase", response_model=PurchaseResponse)
async def purchase(
    payload: PurchaseRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PurchaseService(db).purchase(user, payload.product_id, payload.quantity)


@router.get("/orders", response_model=list[OrderOut])
async def my_orders(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PurchaseService(db).list_user_orders(user.id)


@router.get("/teams", response_model=list[TeamOption])
async def donation_targets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Teams the current user may donate to."""
    return await DonationService(db).list_recipient_teams(user)


@router.post("/donate", response_model=DonateResponse)
async def donate(
    payload: DonateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await DonationService(db).donate(
        user,
        payload.recipient_team_id,
        payload.product_id,
        payload.quantity,
        payload.message,
    )

