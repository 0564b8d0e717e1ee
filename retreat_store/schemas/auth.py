"""Authentication schema definitions."""
from typing import Optional

from pydantic import BaseModel, constr

from retreat_store.schemas.base import BaseSchema

UsernameStr = constr(strip_whitespace=True, min_length=1, max_length=80)


class LoginRequest(BaseModel):
    username: UsernameStr
    password: str


class SessionUser(BaseSchema):
    """The logged-in account as the frontend sees it."""

    id: int
    username: str
    role: str
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    balance: int


class SessionResponse(BaseSchema):
    success: bool = True
    authenticated: bool = True
    user: Optional[SessionUser] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
