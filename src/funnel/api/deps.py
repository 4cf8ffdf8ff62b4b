"""FastAPI dependencies for authentication and authorization.

These dependencies are used in endpoint function signatures to inject the
authenticated user (resolved from the bearer token's sub claim) and to gate
admin-only endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request, status

from src.funnel.core.security import ROLE_ADMIN, verify_token
from src.funnel.schemas.auth import UserResponse
from src.funnel.services.accounts import AccountService


def get_account_service(request: Request) -> Any:
    """Retrieve AccountService from app.state, 503 if not available."""
    service = getattr(request.app.state, "account_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Account service not initialized",
        )
    return service


async def get_current_user(request: Request) -> UserResponse:
    """Resolve the caller from the Authorization: Bearer header.

    A token whose subject no longer exists (or is inactive) is rejected;
    requests are never attributed to another account.

    Raises:
        HTTPException(401): If no valid token is provided or the user is gone.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(auth_header[7:], token_type="access")
    accounts = get_account_service(request)
    user = await accounts.get_user(payload["sub"])
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(user: UserResponse = Depends(get_current_user)) -> UserResponse:
    """Raises HTTPException(403) unless the caller has the Admin role."""
    if not AccountService.has_role(user, ROLE_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return user
