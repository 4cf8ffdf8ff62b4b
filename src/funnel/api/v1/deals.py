"""Deal pipeline API endpoints.

Provides deal CRUD, pipeline status changes, archiving, and the dashboard.
All endpoints require authentication and only ever see the caller's deals;
another user's deal id answers 404 exactly like a missing one.

DealRepository is accessed via app.state.deal_repository (set during lifespan).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.funnel.api.deps import get_current_user
from src.funnel.core.errors import RecordNotFoundError
from src.funnel.core.monitoring import deal_status_changes_total
from src.funnel.deals.aggregation import build_dashboard
from src.funnel.deals.schemas import (
    Dashboard,
    DealCreate,
    DealRead,
    DealStatusUpdate,
    DealUpdate,
)
from src.funnel.schemas.auth import UserResponse

router = APIRouter(prefix="/api/deals", tags=["deals"])


def _get_deal_repository(request: Request) -> Any:
    """Retrieve DealRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "deal_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Deal management not initialized",
        )
    return repo


def _not_found(exc: RecordNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


# ── Collection Endpoints ─────────────────────────────────────────────────────


@router.get("/dashboard", response_model=Dashboard)
async def get_dashboard(
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> Dashboard:
    """Pipeline totals, per-status groups, and monthly revenue for non-archived deals."""
    repo = _get_deal_repository(request)
    deals = await repo.list_deals(user.id)
    return build_dashboard(deals)


@router.get("/archived", response_model=list[DealRead])
async def list_archived_deals(
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> list[DealRead]:
    """Archived deals, most recently archived first."""
    repo = _get_deal_repository(request)
    return await repo.list_archived_deals(user.id)


@router.get("", response_model=list[DealRead])
async def list_deals(
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> list[DealRead]:
    """Non-archived deals, newest first."""
    repo = _get_deal_repository(request)
    return await repo.list_deals(user.id)


@router.post("", response_model=DealRead, status_code=201)
async def create_deal(
    body: DealCreate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> DealRead:
    """Create a deal. grossValue/netValue default to value when omitted or zero."""
    repo = _get_deal_repository(request)
    return await repo.create_deal(user.id, body)


# ── Item Endpoints ───────────────────────────────────────────────────────────


@router.get("/{deal_id}", response_model=DealRead)
async def get_deal(
    deal_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> DealRead:
    repo = _get_deal_repository(request)
    deal = await repo.get_deal(user.id, deal_id)
    if deal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deal not found: {deal_id}",
        )
    return deal


@router.put("/{deal_id}", response_model=DealRead)
async def update_deal(
    deal_id: int,
    body: DealUpdate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> DealRead:
    """Partial update: only fields present in the body change.

    An explicit null clears optional contact/date/notes fields and is
    ignored for title, amounts, status and priority.
    """
    repo = _get_deal_repository(request)
    try:
        return await repo.update_deal(user.id, deal_id, body)
    except RecordNotFoundError as e:
        raise _not_found(e)


@router.patch("/{deal_id}/status", response_model=DealRead)
async def change_deal_status(
    deal_id: int,
    body: DealStatusUpdate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> DealRead:
    """Move a deal to another pipeline stage."""
    repo = _get_deal_repository(request)
    try:
        deal = await repo.change_status(user.id, deal_id, body.status)
    except RecordNotFoundError as e:
        raise _not_found(e)
    deal_status_changes_total.labels(status=body.status.name.lower()).inc()
    return deal


@router.post("/{deal_id}/archive", response_model=DealRead)
async def archive_deal(
    deal_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> DealRead:
    repo = _get_deal_repository(request)
    try:
        return await repo.set_archived(user.id, deal_id, True)
    except RecordNotFoundError as e:
        raise _not_found(e)


@router.post("/{deal_id}/unarchive", response_model=DealRead)
async def unarchive_deal(
    deal_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> DealRead:
    repo = _get_deal_repository(request)
    try:
        return await repo.set_archived(user.id, deal_id, False)
    except RecordNotFoundError as e:
        raise _not_found(e)


@router.delete("/{deal_id}", status_code=204)
async def delete_deal(
    deal_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
):
    repo = _get_deal_repository(request)
    try:
        await repo.delete_deal(user.id, deal_id)
    except RecordNotFoundError as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
