"""Admin console endpoints."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.database import get_db
from retreat_store.dependencies import get_admin_user
from retreat_store.models.user import User
from retreat_store.schemas.admin import (
    AssignLeaderRequest,
    CreateUserRequest,
    DonationOut,
    GenerateCodesRequest,
    GenerateCodesResponse,
    MoneyCodeOut,
    ProductRequest,
    ProductStatusRequest,
    RankingEntry,
    StockAdjustRequest,
    StockAdjustResponse,
    TeamOut,
    UpdateUserRequest,
    UserOut,
)
from retreat_store.schemas.base import SuccessResponse
from retreat_store.schemas.store import OrderOut, ProductOut
from retreat_store.services import (
    DonationService,
    MoneyCodeService,
    ProductService,
    PurchaseService,
    RankingService,
    UserService,
)

router = APIRouter(dependencies=[Depends(get_admin_user)])
logger = logging.getLogger(__name__)


@router.get("/rankings", response_model=list[RankingEntry])
async def rankings(db: AsyncSession = Depends(get_db)):
    """Teams ordered by donation score."""
    return await RankingService(db).team_rankings()


# Users

@router.get("/users", response_model=list[UserOut])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await UserService(db).list_users()


@router.post("/users", response_model=UserOut, status_code=201)
async def create_user(payload: CreateUserRequest, db: AsyncSession = Depends(get_db)):
    service = UserService(db)
    user = await service.create_user(payload.username, payload.password, payload.role, payload.team_id)
    return await service.get_user_row(user.id)


@router.put("/users/{user_id}", response_model=UserOut)
async def update_user(user_id: int, payload: UpdateUserRequest, db: AsyncSession = Depends(get_db)):
    """Edit a user. A balance change is logged as an admin adjustment."""
    changes = payload.model_dump(exclude_unset=True)
    service = UserService(db)
    await service.update_user(user_id, **changes)
    return await service.get_user_row(user_id)


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    await UserService(db).delete_user(user_id)
    return SuccessResponse(message="User deleted")


# Teams

@router.get("/teams", response_model=list[TeamOut])
async def list_teams(db: AsyncSession = Depends(get_db)):
    return await UserService(db).list_teams()


@router.get("/teams/{team_id}/members", response_model=list[UserOut])
async def team_members(team_id: int, db: AsyncSession = Depends(get_db)):
    return await UserService(db).team_members(team_id)


@router.put("/teams/{team_id}/leader", response_model=SuccessResponse)
async def assign_leader(team_id: int, payload: AssignLeaderRequest, db: AsyncSession = Depends(get_db)):
    await UserService(db).assign_leader(team_id, payload.user_id)
    return SuccessResponse(message="Team leader updated")


# Money codes

@router.get("/money-codes", response_model=list[MoneyCodeOut])
async def list_money_codes(db: AsyncSession = Depends(get_db)):
    return await MoneyCodeService(db).list_codes()


@router.post("/money-codes", response_model=GenerateCodesResponse, status_code=201)
async def generate_money_codes(
    payload: GenerateCodesRequest,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await MoneyCodeService(db).generate(admin, payload.amount, payload.quantity)


# Products

@router.get("/products", response_model=list[ProductOut])
async def list_products(db: AsyncSession = Depends(get_db)):
    return await ProductService(db).list_all()


@router.post("/products", response_model=ProductOut, status_code=201)
async def create_product(payload: ProductRequest, db: AsyncSession = Depends(get_db)):
    return await ProductService(db).create_product(
        payload.name,
        payload.price,
        payload.stock_quantity if payload.stock_quantity is not None else 0,
        description=payload.description,
        category=payload.category,
    )


@router.put("/products/{product_id}", response_model=ProductOut)
async def update_product(product_id: int, payload: ProductRequest, db: AsyncSession = Depends(get_db)):
    return await ProductService(db).update_product(
        product_id,
        payload.name,
        payload.price,
        description=payload.description,
        category=payload.category,
        stock_quantity=payload.stock_quantity,
    )


@router.put("/products/{product_id}/status", response_model=ProductOut)
async def set_product_status(
    product_id: int,
    payload: ProductStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).set_active(product_id, payload.is_active)


@router.post("/products/{product_id}/stock", response_model=StockAdjustResponse)
async def adjust_stock(product_id: int, payload: StockAdjustRequest, db: AsyncSession = Depends(get_db)):
    return await ProductService(db).adjust_stock(product_id, payload.adjustment_type, payload.value)


@router.delete("/products/{product_id}", response_model=SuccessResponse)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    await ProductService(db).delete_product(product_id)
    return SuccessResponse(message="Product deleted")


# Orders and donations

@router.get("/orders", response_model=list[OrderOut])
async def list_orders(db: AsyncSession = Depends(get_db)):
    return await PurchaseService(db).list_orders()


@router.post("/orders/{order_id}/verify", response_model=SuccessResponse)
async def verify_order(order_id: int, db: AsyncSession = Depends(get_db)):
    result = await PurchaseService(db).verify_order(order_id)
    return SuccessResponse(message=result["message"])


@router.get("/donations", response_model=list[DonationOut])
async def list_donations(db: AsyncSession = Depends(get_db)):
    return await DonationService(db).list_donations()
