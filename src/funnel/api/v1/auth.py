"""Authentication and user administration endpoints.

Login and register are public. /me needs a valid token; everything under
/users and /admin requires the Admin role.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.funnel.api.deps import get_account_service, get_current_user, require_admin
from src.funnel.core.security import ROLE_USER, create_access_token
from src.funnel.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdatePasswordRequest,
    UserResponse,
)
from src.funnel.schemas.base import MessageResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user: UserResponse) -> AuthResponse:
    token = create_access_token({"sub": user.id, "email": user.email, "role": user.role})
    return AuthResponse(
        token=token,
        user_id=user.id,
        email=user.email,
        role=user.role,
        modules=user.modules,
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, accounts: Any = Depends(get_account_service)):
    """Authenticate with email and password and return a bearer token."""
    user = await accounts.authenticate(body.email, body.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _auth_response(user)


@router.post("/register", response_model=AuthResponse)
async def register(body: RegisterRequest, accounts: Any = Depends(get_account_service)):
    """Self-service registration. Always creates a User, whatever role is sent."""
    user = await accounts.register(
        email=body.email,
        password=body.password,
        role=ROLE_USER,
        module_ids=body.module_ids,
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )
    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(user: UserResponse = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return user


# ── Admin ────────────────────────────────────────────────────────────────────


@router.post("/admin/register", response_model=UserResponse, status_code=201)
async def admin_register(
    body: RegisterRequest,
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    """Create an account with the requested role and modules."""
    user = await accounts.register(
        email=body.email,
        password=body.password,
        role=body.role,
        module_ids=body.module_ids,
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )
    return user


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    """List every user, ordered by email."""
    return await accounts.list_users()


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    """Delete a user together with all the records they own."""
    try:
        target_id = uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User not found: {user_id}",
        )
    if target_id == uuid.UUID(admin.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    if not await accounts.delete_user(user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User not found: {user_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/users/{user_id}/password", response_model=MessageResponse)
async def update_password(
    user_id: str,
    body: UpdatePasswordRequest,
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    """Reset another user's password."""
    if not await accounts.update_password(user_id, body.new_password):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User not found: {user_id}",
        )
    return MessageResponse(message="Password updated")
