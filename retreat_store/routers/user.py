"""Endpoints for the logged-in user's balance, ledger and team."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.database import get_db
from retreat_store.dependencies import get_current_user
from retreat_store.models.user import User
from retreat_store.schemas.store import InventoryItem, OrderOut
from retreat_store.schemas.user import (
    DashboardResponse,
    RedeemCodeRequest,
    RedeemCodeResponse,
    TeamSummary,
    TransactionOut,
)
from retreat_store.services import (
    AuthService,
    InventoryService,
    MoneyCodeService,
    PurchaseService,
    RankingService,
    TransactionService,
)
from retreat_store.utils.exceptions import NotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Account snapshot plus recent ledger entries scoped by role."""
    transactions = await TransactionService(db).list_for_dashboard(user)
    session_user = await AuthService(db).session_user(user.id)
    return DashboardResponse(user=session_user, transactions=transactions)


@router.post("/redeem-code", response_model=RedeemCodeResponse)
async def redeem_code(
    payload: RedeemCodeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await MoneyCodeService(db).redeem(user, payload.code)


@router.get("/transactions", response_model=list[TransactionOut])
async def my_transactions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TransactionService(db).list_for_user(user.id)


@router.get("/team", response_model=TeamSummary)
async def team_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.team_id is None:
        raise NotFoundError("You are not assigned to a team")
    return await RankingService(db).team_summary(user.team_id)


@router.get("/team/transactions", response_model=list[TransactionOut])
async def team_transactions(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.team_id is None:
        return []
    return await TransactionService(db).list_for_team(user.team_id)


@router.get("/team/purchases", response_model=list[OrderOut])
async def team_purchases(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.team_id is None:
        return []
    return await PurchaseService(db).list_team_orders(user.team_id)


@router.get("/team/inventory", response_model=list[InventoryItem])
async def team_inventory(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.team_id is None:
        return []
    return await InventoryService(db).team_inventory(user.team_id)
