"""Bootstrap provisioning -- default modules, the admin account, demo data.

Runs at application startup (see main.lifespan) and from
scripts/provision_admin.py. Every step is idempotent: existing modules and
accounts are left as they are.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.funnel.core.security import ROLE_ADMIN
from src.funnel.deals.repository import DealRepository
from src.funnel.deals.schemas import DealCreate, DealStatus, PaymentMethod, Priority
from src.funnel.models.users import Module
from src.funnel.schemas.auth import UserResponse
from src.funnel.services.accounts import AccountService

logger = structlog.get_logger(__name__)

# (key, name, description)
DEFAULT_MODULES: list[tuple[str, str, str]] = [
    ("funnel", "Sales Funnel", "Deal pipeline and dashboard"),
    ("inventory", "Inventory", "Stock items and movements"),
    ("reports", "Reports", "Monthly revenue reports"),
    ("sublocation", "Sublocation", "Sub-leasing service records"),
    ("archived", "Archived", "Archived deals"),
]


async def ensure_default_modules(
    session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
) -> int:
    """Insert any missing default module.

    Returns:
        Number of modules created.
    """
    async for session in session_factory():
        result = await session.execute(select(Module.key))
        existing = set(result.scalars().all())
        created = 0
        for key, name, description in DEFAULT_MODULES:
            if key in existing:
                continue
            session.add(Module(key=key, name=name, description=description, is_active=True))
            created += 1
        if created:
            await session.commit()
            logger.info("provisioning.modules_created", count=created)
        return created


async def ensure_admin(
    accounts: AccountService, email: str, password: str
) -> UserResponse | None:
    """Create the admin account with every active module, unless it exists.

    Returns:
        The new admin, or None when it already existed or no password is set.
    """
    if not password:
        logger.info("provisioning.admin_skipped", reason="no password configured")
        return None
    modules = await accounts.list_modules()
    admin = await accounts.register(
        email=email,
        password=password,
        role=ROLE_ADMIN,
        module_ids=[m.id for m in modules],
    )
    if admin is not None:
        logger.info("provisioning.admin_created", user_id=admin.id, email=admin.email)
    return admin


def demo_deals(now: datetime | None = None) -> list[DealCreate]:
    """A small pipeline covering every status, two of them paid."""
    now = now or datetime.now(timezone.utc)
    last_month = now - timedelta(days=30)
    return [
        DealCreate(title="Website redesign", company="Acme Corp", value=4500),
        DealCreate(
            title="Annual support plan",
            company="Globex",
            value=12000,
            status=DealStatus.QUALIFIED,
            priority=Priority.HIGH,
        ),
        DealCreate(title="Hardware refresh", company="Initech", value=8300, status=DealStatus.PROPOSAL),
        DealCreate(
            title="Cloud migration",
            company="Umbrella",
            value=25000,
            status=DealStatus.NEGOTIATION,
            expected_close_date=now + timedelta(days=21),
        ),
        DealCreate(
            title="Training workshop",
            company="Hooli",
            value=3000,
            net_value=2700,
            status=DealStatus.CLOSED,
            payment_method=PaymentMethod.PIX,
            payment_date=now,
        ),
        DealCreate(
            title="Consulting retainer",
            company="Stark Industries",
            value=6000,
            status=DealStatus.CLOSED,
            payment_method=PaymentMethod.CARD,
            payment_date=last_month,
        ),
    ]


async def seed_demo_deals(deals: DealRepository, user_id: str) -> int:
    """Create the demo pipeline for user_id. Returns the number of deals created."""
    created = 0
    for data in demo_deals():
        await deals.create_deal(user_id, data)
        created += 1
    logger.info("provisioning.demo_deals_seeded", user_id=user_id, count=created)
    return created


async def bootstrap(
    session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
    admin_email: str,
    admin_password: str,
) -> None:
    """Ensure default modules and the configured admin account exist."""
    await ensure_default_modules(session_factory)
    await ensure_admin(AccountService(session_factory), admin_email, admin_password)
