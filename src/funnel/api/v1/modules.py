"""Module entitlement endpoints. All of them require the Admin role."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from src.funnel.api.deps import get_account_service, require_admin
from src.funnel.schemas.auth import UserResponse
from src.funnel.schemas.modules import ModuleRead, UpdateUserModulesRequest

router = APIRouter(prefix="/api/module", tags=["modules"])


def _user_not_found(user_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"User not found: {user_id}",
    )


@router.get("", response_model=list[ModuleRead])
async def list_modules(
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    """List active modules ordered by name."""
    return await accounts.list_modules()


@router.get("/user/{user_id}", response_model=list[ModuleRead])
async def get_user_modules(
    user_id: str,
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    modules = await accounts.user_modules(user_id)
    if modules is None:
        raise _user_not_found(user_id)
    return modules


@router.put("/user/{user_id}", response_model=list[ModuleRead])
async def update_user_modules(
    user_id: str,
    body: UpdateUserModulesRequest,
    admin: UserResponse = Depends(require_admin),
    accounts: Any = Depends(get_account_service),
):
    """Replace the user's module grants. Unknown or inactive ids are ignored."""
    modules = await accounts.set_user_modules(user_id, body.module_ids)
    if modules is None:
        raise _user_not_found(user_id)
    return modules
