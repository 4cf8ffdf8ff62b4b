"""Inventory repository -- owner-scoped CRUD plus stock movements.

Movements go through apply_movement(), which validates the whole change
before anything is written: an exit larger than the stock on hand raises
InsufficientStockError and leaves the item untouched.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.funnel.core.errors import InsufficientStockError, RecordNotFoundError
from src.funnel.inventory.models import InventoryItemModel
from src.funnel.inventory.schemas import (
    InventoryItemCreate,
    InventoryItemRead,
    MovementDirection,
)

logger = structlog.get_logger(__name__)


def apply_movement(
    item_id: int, current: float, direction: MovementDirection, quantity: float
) -> float:
    """Return the stock level after a movement.

    Raises:
        InsufficientStockError: If an exit would take the quantity below zero.
    """
    if direction == MovementDirection.ENTRY:
        return round(current + quantity, 2)
    if quantity > current:
        raise InsufficientStockError(item_id, available=current, requested=quantity)
    return round(current - quantity, 2)


def _model_to_item(model: InventoryItemModel) -> InventoryItemRead:
    return InventoryItemRead(
        id=model.id,
        user_id=str(model.user_id),
        name=model.name,
        description=model.description,
        quantity=model.quantity or 0.0,
        min_quantity=model.min_quantity or 0.0,
        unit_price=model.unit_price or 0.0,
        category=model.category,
        supplier=model.supplier,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class InventoryRepository:
    """Async CRUD and stock movements for a user's inventory items.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def _get_owned(
        self, session: AsyncSession, user_id: str, item_id: int
    ) -> InventoryItemModel:
        stmt = select(InventoryItemModel).where(
            InventoryItemModel.user_id == uuid.UUID(user_id),
            InventoryItemModel.id == item_id,
        )
        result = await session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            raise RecordNotFoundError("Inventory item", item_id)
        return model

    async def create_item(self, user_id: str, data: InventoryItemCreate) -> InventoryItemRead:
        async for session in self._session_factory():
            model = InventoryItemModel(user_id=uuid.UUID(user_id), **data.model_dump())
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("inventory.created", user_id=user_id, item_id=model.id)
            return _model_to_item(model)

    async def get_item(self, user_id: str, item_id: int) -> InventoryItemRead | None:
        async for session in self._session_factory():
            stmt = select(InventoryItemModel).where(
                InventoryItemModel.user_id == uuid.UUID(user_id),
                InventoryItemModel.id == item_id,
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_item(model)

    async def list_items(self, user_id: str) -> list[InventoryItemRead]:
        """List the user's items ordered by name."""
        async for session in self._session_factory():
            stmt = (
                select(InventoryItemModel)
                .where(InventoryItemModel.user_id == uuid.UUID(user_id))
                .order_by(InventoryItemModel.name, InventoryItemModel.id)
            )
            result = await session.execute(stmt)
            return [_model_to_item(m) for m in result.scalars().all()]

    async def update_item(
        self, user_id: str, item_id: int, data: InventoryItemCreate
    ) -> InventoryItemRead:
        """Replace every editable field of an item.

        Raises:
            RecordNotFoundError: If the item does not exist or is not owned by user_id.
        """
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, item_id)
            for key, value in data.model_dump().items():
                setattr(model, key, value)
            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(model)
            logger.info("inventory.updated", user_id=user_id, item_id=item_id)
            return _model_to_item(model)

    async def delete_item(self, user_id: str, item_id: int) -> None:
        """Raises RecordNotFoundError if the item is missing or not owned by user_id."""
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, item_id)
            await session.delete(model)
            await session.commit()
            logger.info("inventory.deleted", user_id=user_id, item_id=item_id)

    async def record_movement(
        self,
        user_id: str,
        item_id: int,
        direction: MovementDirection,
        quantity: float,
        notes: str | None = None,
    ) -> float:
        """Apply an entry or exit and return the new quantity.

        Raises:
            RecordNotFoundError: If the item does not exist or is not owned by user_id.
            InsufficientStockError: If an exit exceeds the stock on hand.
        """
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, item_id)
            try:
                new_quantity = apply_movement(item_id, model.quantity or 0.0, direction, quantity)
            except InsufficientStockError:
                logger.warning(
                    "inventory.exit_rejected",
                    user_id=user_id,
                    item_id=item_id,
                    available=model.quantity,
                    requested=quantity,
                )
                raise
            model.quantity = new_quantity
            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            logger.info(
                f"inventory.{direction.value}",
                user_id=user_id,
                item_id=item_id,
                quantity=quantity,
                new_quantity=new_quantity,
                notes=notes,
            )
            return new_quantity
