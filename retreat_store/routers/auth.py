"""Session login endpoints."""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.database import get_db
from retreat_store.dependencies import SESSION_USER_KEY, get_current_user
from retreat_store.models.user import User
from retreat_store.schemas.auth import ChangePasswordRequest, LoginRequest, SessionResponse
from retreat_store.schemas.base import SuccessResponse
from retreat_store.services import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Check credentials and start a session."""
    auth_service = AuthService(db)
    user = await auth_service.authenticate(payload.username, payload.password)
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    return SessionResponse(user=await auth_service.session_user(user.id))


@router.post("/logout", response_model=SuccessResponse)
async def logout(request: Request):
    request.session.clear()
    return SuccessResponse(message="Logged out")


@router.get("/me", response_model=SessionResponse)
async def current_session(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Who is logged in, with a fresh balance."""
    return SessionResponse(user=await AuthService(db).session_user(user.id))


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).change_password(user, payload.current_password, payload.new_password)
    return SuccessResponse(message="Password changed successfully")
