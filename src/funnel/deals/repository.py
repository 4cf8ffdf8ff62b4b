"""Deal repository -- owner-scoped async CRUD, status changes, and archiving.

Provides DealRepository with the session_factory callable pattern. Every
method takes the acting user's id first and filters on it, so a deal owned
by someone else behaves exactly like a missing one.

Patch application is split into pure helpers (resolve_amounts,
deal_changes) that work on anything carrying value/gross_value/net_value,
so the same rules apply to ORM rows and to in-memory test doubles.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.funnel.core.errors import RecordNotFoundError
from src.funnel.deals.models import DealModel
from src.funnel.deals.schemas import (
    DealCreate,
    DealRead,
    DealStatus,
    DealUpdate,
    PaymentMethod,
    Priority,
)

logger = structlog.get_logger(__name__)

# Fields an explicit null clears. For every other field null means "unchanged".
NULLABLE_FIELDS = frozenset({
    "company",
    "contact_name",
    "email",
    "phone",
    "payment_method",
    "expected_close_date",
    "payment_date",
    "birthday",
    "notes",
})


# ── Patch Helpers ───────────────────────────────────────────────────────────


def resolve_amounts(
    value: float, gross_value: float | None, net_value: float | None
) -> tuple[float, float]:
    """Return (gross, net) with missing or zero amounts replaced by value."""
    return (gross_value or value, net_value or value)


def deal_changes(current: Any, data: DealUpdate) -> dict[str, Any]:
    """Compute the attribute changes a DealUpdate makes to an existing deal.

    Only fields present in the request body are considered. The result is
    computed in full before anything is written, and always carries
    gross_value/net_value when the fallback to value applies.

    Args:
        current: Existing deal (ORM row or DealRead).
        data: Validated patch body.

    Returns:
        Mapping of attribute name to new value.
    """
    changes: dict[str, Any] = {}
    for field in data.model_fields_set:
        new_value = getattr(data, field)
        if new_value is None and field not in NULLABLE_FIELDS:
            continue
        changes[field] = new_value

    value = changes.get("value", current.value)
    gross, net = resolve_amounts(
        value,
        changes.get("gross_value", current.gross_value),
        changes.get("net_value", current.net_value),
    )
    if gross != current.gross_value:
        changes["gross_value"] = gross
    if net != current.net_value:
        changes["net_value"] = net
    return changes


def _to_column(value: Any) -> Any:
    """IntEnums are stored as plain integers."""
    if isinstance(value, (DealStatus, Priority, PaymentMethod)):
        return int(value)
    return value


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_deal(model: DealModel) -> DealRead:
    """Convert DealModel to DealRead schema."""
    return DealRead(
        id=model.id,
        user_id=str(model.user_id),
        title=model.title,
        company=model.company,
        contact_name=model.contact_name,
        email=model.email,
        phone=model.phone,
        value=model.value or 0.0,
        gross_value=model.gross_value or 0.0,
        net_value=model.net_value or 0.0,
        status=DealStatus(model.status),
        priority=Priority(model.priority),
        payment_method=PaymentMethod(model.payment_method) if model.payment_method is not None else None,
        expected_close_date=model.expected_close_date,
        payment_date=model.payment_date,
        birthday=model.birthday,
        notes=model.notes,
        is_archived=model.is_archived,
        archived_at=model.archived_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


# ── Repository ──────────────────────────────────────────────────────────────


class DealRepository:
    """Async CRUD operations for a user's deals.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def _get_owned(self, session: AsyncSession, user_id: str, deal_id: int) -> DealModel:
        stmt = select(DealModel).where(
            DealModel.user_id == uuid.UUID(user_id),
            DealModel.id == deal_id,
        )
        result = await session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            raise RecordNotFoundError("Deal", deal_id)
        return model

    async def create_deal(self, user_id: str, data: DealCreate) -> DealRead:
        """Create a deal owned by user_id.

        gross_value and net_value default to value when omitted or zero.
        """
        gross, net = resolve_amounts(data.value, data.gross_value, data.net_value)
        async for session in self._session_factory():
            model = DealModel(
                user_id=uuid.UUID(user_id),
                title=data.title,
                company=data.company,
                contact_name=data.contact_name,
                email=data.email,
                phone=data.phone,
                value=data.value,
                gross_value=gross,
                net_value=net,
                status=int(data.status),
                priority=int(data.priority),
                payment_method=int(data.payment_method) if data.payment_method is not None else None,
                expected_close_date=data.expected_close_date,
                payment_date=data.payment_date,
                birthday=data.birthday,
                notes=data.notes,
            )
            session.add(model)
            await session.commit()
            await session.refresh(model)
            logger.info("deal.created", user_id=user_id, deal_id=model.id)
            return _model_to_deal(model)

    async def get_deal(self, user_id: str, deal_id: int) -> DealRead | None:
        """Get one of the user's deals, archived or not.

        Returns:
            DealRead if found and owned by user_id, None otherwise.
        """
        async for session in self._session_factory():
            stmt = select(DealModel).where(
                DealModel.user_id == uuid.UUID(user_id),
                DealModel.id == deal_id,
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_deal(model)

    async def list_deals(self, user_id: str) -> list[DealRead]:
        """List the user's non-archived deals, newest first."""
        async for session in self._session_factory():
            stmt = (
                select(DealModel)
                .where(
                    DealModel.user_id == uuid.UUID(user_id),
                    DealModel.is_archived.is_(False),
                )
                .order_by(DealModel.created_at.desc(), DealModel.id.desc())
            )
            result = await session.execute(stmt)
            return [_model_to_deal(m) for m in result.scalars().all()]

    async def list_archived_deals(self, user_id: str) -> list[DealRead]:
        """List the user's archived deals, most recently archived first."""
        async for session in self._session_factory():
            stmt = (
                select(DealModel)
                .where(
                    DealModel.user_id == uuid.UUID(user_id),
                    DealModel.is_archived.is_(True),
                )
                .order_by(DealModel.archived_at.desc(), DealModel.id.desc())
            )
            result = await session.execute(stmt)
            return [_model_to_deal(m) for m in result.scalars().all()]

    async def update_deal(self, user_id: str, deal_id: int, data: DealUpdate) -> DealRead:
        """Apply a partial update.

        Raises:
            RecordNotFoundError: If the deal does not exist or is not owned by user_id.
        """
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, deal_id)
            changes = deal_changes(model, data)
            for key, value in changes.items():
                setattr(model, key, _to_column(value))

            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(model)
            logger.info("deal.updated", user_id=user_id, deal_id=deal_id, fields=sorted(changes))
            return _model_to_deal(model)

    async def change_status(self, user_id: str, deal_id: int, status: DealStatus) -> DealRead:
        """Move a deal to another pipeline stage.

        Raises:
            RecordNotFoundError: If the deal does not exist or is not owned by user_id.
        """
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, deal_id)
            previous = model.status
            model.status = int(status)
            model.updated_at = datetime.now(timezone.utc)
            await session.commit()
            await session.refresh(model)
            logger.info(
                "deal.status_changed",
                user_id=user_id,
                deal_id=deal_id,
                from_status=DealStatus(previous).name,
                to_status=status.name,
            )
            return _model_to_deal(model)

    async def set_archived(self, user_id: str, deal_id: int, archived: bool) -> DealRead:
        """Archive (archived_at=now) or unarchive (archived_at cleared) a deal.

        Raises:
            RecordNotFoundError: If the deal does not exist or is not owned by user_id.
        """
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, deal_id)
            now = datetime.now(timezone.utc)
            model.is_archived = archived
            model.archived_at = now if archived else None
            model.updated_at = now
            await session.commit()
            await session.refresh(model)
            logger.info(
                "deal.archived" if archived else "deal.unarchived",
                user_id=user_id,
                deal_id=deal_id,
            )
            return _model_to_deal(model)

    async def delete_deal(self, user_id: str, deal_id: int) -> None:
        """Hard-delete a deal.

        Raises:
            RecordNotFoundError: If the deal does not exist or is not owned by user_id.
        """
        async for session in self._session_factory():
            model = await self._get_owned(session, user_id, deal_id)
            await session.delete(model)
            await session.commit()
            logger.info("deal.deleted", user_id=user_id, deal_id=deal_id)
