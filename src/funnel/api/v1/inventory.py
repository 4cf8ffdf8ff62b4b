"""Inventory API endpoints.

Owner-scoped CRUD plus entry/exit stock movements. An exit larger than the
stock on hand answers 400 and leaves the quantity unchanged.

InventoryRepository is accessed via app.state.inventory_repository.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.funnel.api.deps import get_current_user
from src.funnel.core.errors import InsufficientStockError, RecordNotFoundError
from src.funnel.core.monitoring import inventory_movements_total
from src.funnel.inventory.schemas import (
    InventoryItemCreate,
    InventoryItemRead,
    MovementDirection,
    MovementRequest,
    MovementResponse,
)
from src.funnel.schemas.auth import UserResponse

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

_MOVEMENT_MESSAGES = {
    MovementDirection.ENTRY: "Stock entry recorded",
    MovementDirection.EXIT: "Stock exit recorded",
}


def _get_inventory_repository(request: Request) -> Any:
    """Retrieve InventoryRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "inventory_repository", None)
    if repo is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inventory not initialized",
        )
    return repo


@router.get("", response_model=list[InventoryItemRead])
async def list_items(
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> list[InventoryItemRead]:
    """The caller's items ordered by name."""
    repo = _get_inventory_repository(request)
    return await repo.list_items(user.id)


@router.post("", response_model=InventoryItemRead, status_code=201)
async def create_item(
    body: InventoryItemCreate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> InventoryItemRead:
    repo = _get_inventory_repository(request)
    return await repo.create_item(user.id, body)


@router.get("/{item_id}", response_model=InventoryItemRead)
async def get_item(
    item_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> InventoryItemRead:
    repo = _get_inventory_repository(request)
    item = await repo.get_item(user.id, item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Inventory item not found: {item_id}",
        )
    return item


@router.put("/{item_id}", response_model=InventoryItemRead)
async def update_item(
    item_id: int,
    body: InventoryItemCreate,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> InventoryItemRead:
    repo = _get_inventory_repository(request)
    try:
        return await repo.update_item(user.id, item_id, body)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{item_id}", status_code=204)
async def delete_item(
    item_id: int,
    request: Request,
    user: UserResponse = Depends(get_current_user),
):
    repo = _get_inventory_repository(request)
    try:
        await repo.delete_item(user.id, item_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _move(
    request: Request,
    user: UserResponse,
    item_id: int,
    direction: MovementDirection,
    body: MovementRequest,
) -> MovementResponse:
    repo = _get_inventory_repository(request)
    try:
        new_quantity = await repo.record_movement(
            user.id, item_id, direction, body.quantity, body.notes
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientStockError as e:
        inventory_movements_total.labels(direction=direction.value, outcome="rejected").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    inventory_movements_total.labels(direction=direction.value, outcome="applied").inc()
    return MovementResponse(message=_MOVEMENT_MESSAGES[direction], new_quantity=new_quantity)


@router.post("/{item_id}/entry", response_model=MovementResponse)
async def stock_entry(
    item_id: int,
    body: MovementRequest,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> MovementResponse:
    """Add quantity to an item's stock."""
    return await _move(request, user, item_id, MovementDirection.ENTRY, body)


@router.post("/{item_id}/exit", response_model=MovementResponse)
async def stock_exit(
    item_id: int,
    body: MovementRequest,
    request: Request,
    user: UserResponse = Depends(get_current_user),
) -> MovementResponse:
    """Remove quantity from an item's stock, rejected if it would go negative."""
    return await _move(request, user, item_id, MovementDirection.EXIT, body)
