"""SubLocation API endpoints.

discountValue and netValue are recomputed server-side on create and update;
client-supplied values for them are ignored.

SubLocationRepository is accessed via app.state.sublocation_repository.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.funnel.api.deps import get_current_user
from src.funnel.core.errors import RecordNotFoundError
from src.funnel.schemas.auth import UserResponse
from src.funnel.sublocations.schemas import SubLocationCreate, SubLocationRead

router = APIRouter(prefix="/api/sublocation", tags=["sublocation"])


def _get_sublocation_repository(request: Request) -> Any:
    """Retrieve SubLocationRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "sublocation_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sublocation not initialized",
        )
    return repo


@router.get("", response_model=list[SubLocationRead])
async def list_sublocations(
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> list[SubLocationRead]:
    """The caller's records, most recent service date first."""
    repo = _get_sublocation_repository(request)
    return await repo.list_sublocations(user.id)


@router.post("", response_model=SubLocationRead, status_code=201)
async def create_sublocation(
    body: SubLocationCreate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> SubLocationRead:
    repo = _get_sublocation_repository(request)
    return await repo.create_sublocation(user.id, body)


@router.get("/{sublocation_id}", response_model=SubLocationRead)
async def get_sublocation(
    sublocation_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> SubLocationRead:
    repo = _get_sublocation_repository(request)
    sublocation = await repo.get_sublocation(user.id, sublocation_id)
    if sublocation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"SubLocation not found: {sublocation_id}",
        )
    return sublocation


@router.put("/{sublocation_id}", response_model=SubLocationRead)
async def update_sublocation(
    sublocation_id: int,
    body: SubLocationCreate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> SubLocationRead:
    repo = _get_sublocation_repository(request)
    try:
        return await repo.update_sublocation(user.id, sublocation_id, body)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{sublocation_id}", status_code=204)
async def delete_sublocation(
    sublocation_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
):
    repo = _get_sublocation_repository(request)
    try:
        await repo.delete_sublocation(user.id, sublocation_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
