"""SubLocation repository -- owner-scoped CRUD with derived discount values."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.funnel.core.errors import RecordNotFoundError
from src.funnel.sublocations.models import SubLocationModel
from src.funnel.sublocations.schemas import SubLocationCreate, SubLocationRead

logger = structlog.get_logger(__name__)

_CENTS = Decimal("0.01")


def compute_discount(service_value: float, discount_percentage: float) -> tuple[float, float]:
    """Return (discount_value, net_value) rounded to cents.

    discount = service_value * discount_percentage / 100
    net      = service_value - discount
    """
    gross = Decimal(str(service_value))
    discount = (gross * Decimal(str(discount_percentage)) / 100).quantize(_CENTS, ROUND_HALF_UP)
    net = (gross - discount).quantize(_CENTS, ROUND_HALF_UP)
    return float(discount), float(net)


def _model_to_sublocation(model: SubLocationModel) -> SubLocationRead:
    return SubLocationRead(
        id=model.id,
        user_id=str(model.user_id),
        title=model.title,
        description=model.description,
        third_party_name=model.third_party_name,
        service_value=model.service_value or 0.0,
        discount_percentage=model.discount_percentage or 0.0,
        discount_value=model.discount_value or 0.0,
        net_value=model.net_value or 0.0,
        service_type=model.service_type,
        service_date=model.service_date,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SubLocationRepository:
    """Async CRUD for a user's sublocation records.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def _get_owned(
        self, session: AsyncSession, user_id: str, sublocation_id: int
    ) -> SubLocationModel:
        stmt = select(SubLocationModel).where(
            SubLocationModel.user_id == uuid.UUID(user_id),
            SubLocationModel.id == sublocation_id,
        )
        result = await session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            raise RecordNotFoundError("SubLocation", sublocation_id)
        return model

    async def create_sublocation(
        self, user_id: str, data: SubLocationCreate
    ) -> SubLocationRead:
        discount, net = compute_discount(data.service_value, data.discount_percentage)
        async for session in self._session_factory():
            model = SubLocationModel(
                user_id=uuid.UUID(user_id),
                discount_value=discount,
                net_value=net,
                **data.model_dump(),
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("sublocation.created", user_id=user_id, sublocation_id=model.id)
            return _model_to_sublocation(model)

    async def get_sublocation(
        self, user_id: str, sublocation_id: int
    ) -> SubLocationRead | None:
        async for session in self._session_factory():
            stmt = select(SubLocationModel).where(
                SubLocationModel.user_id == uuid.UUID(user_id),
                SubLocationModel.id == sublocation_id,
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_sublocation(model)

    async def list_sublocations(self, user_id: str) -> list[SubLocationRead]:
        """List the user's records, most recent service date first."""
        async for session in self._session_factory():
            stmt = (
                select(SubLocationModel)
                .where(SubLocationModel.user_id == uuid.UUID(user_id))
                .order_by(SubLocationModel.service_date.desc(), SubLocationModel.id.desc())
            )
            result = await session.execute(stmt)
            return [_model_to_sublocation(m) for m in result.scalars().all()]

    async def update_sublocation(
        self, user_id: str, sublocation_id: int, data: SubLocationCreate
    ) -> SubLocationRead:
        """Replace every editable field and recompute the derived values.

        Raises:
            RecordNotFoundError: If the record does not exist or is not owned by user_id.
        """
        discount, net = compute_discount(data.service_value, data.discount_percentage)
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, sublocation_id)
            for key, value in data.model_dump().items():
                setattr(model, key, value)
            model.discount_value = discount
            model.net_value = net
            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(model)
            logger.info("sublocation.updated", user_id=user_id, sublocation_id=sublocation_id)
            return _model_to_sublocation(model)

    async def delete_sublocation(self, user_id: str, sublocation_id: int) -> None:
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, sublocation_id)
            await session.delete(model)
            await session.commit()
            logger.info("sublocation.deleted", user_id=user_id, sublocation_id=sublocation_id)
