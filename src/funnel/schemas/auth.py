"""Pydantic schemas for authentication and user administration endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from src.funnel.core.security import ROLE_USER
from src.funnel.schemas.base import CamelModel
from src.funnel.schemas.modules import ModuleRead


class LoginRequest(CamelModel):
    """Request schema for user login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class RegisterRequest(CamelModel):
    """Request schema for creating an account.

    role is only honoured on the admin registration route; public
    registration always creates a User.
    """

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: str = Field(default=ROLE_USER, pattern="^(Admin|User)$")
    module_ids: list[int] = Field(default_factory=list)


class AuthResponse(CamelModel):
    """Token plus the identity it was issued for."""

    token: str
    user_id: str
    email: str
    role: str
    modules: list[ModuleRead]


class UserResponse(CamelModel):
    """A user as seen by the user itself or an admin."""

    id: str
    email: str
    role: str
    is_active: bool = True
    created_at: datetime | None = None
    modules: list[ModuleRead] = Field(default_factory=list)


class UpdatePasswordRequest(CamelModel):
    """Admin password reset for another user."""

    new_password: str = Field(..., min_length=6, max_length=128)
