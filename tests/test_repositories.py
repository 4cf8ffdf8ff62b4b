"""Tests for the SQLAlchemy repositories and AccountService on a real database.

Runs the production repositories against a file-backed SQLite database
(aiosqlite, one connection per session) so the owner filters, partial
update write-back, stock rules and derived values are exercised in SQL.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.funnel.core.database import Base
from src.funnel.core.errors import InsufficientStockError, RecordNotFoundError
from src.funnel.deals import models as _deal_models  # noqa: F401
from src.funnel.deals.repository import DealRepository
from src.funnel.deals.schemas import DealCreate, DealStatus, DealUpdate, PaymentMethod
from src.funnel.inventory import models as _inventory_models  # noqa: F401
from src.funnel.inventory.repository import InventoryRepository
from src.funnel.inventory.schemas import InventoryItemCreate, MovementDirection
from src.funnel.models.users import Module
from src.funnel.services.accounts import AccountService
from src.funnel.sublocations import models as _sublocation_models  # noqa: F401
from src.funnel.sublocations.repository import SubLocationRepository
from src.funnel.sublocations.schemas import SubLocationCreate


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'funnel.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def factory() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def accounts(session_factory) -> AccountService:
    async for session in session_factory():
        session.add_all([
            Module(key="funnel", name="Sales Funnel", is_active=True),
            Module(key="inventory", name="Inventory", is_active=True),
            Module(key="legacy", name="Legacy", is_active=False),
        ])
        await session.commit()
    return AccountService(session_factory)


@pytest_asyncio.fixture
async def owners(accounts):
    """(alice_id, bob_id) of two registered users."""
    alice = await accounts.register("alice@example.com", "alice-pass")
    bob = await accounts.register("bob@example.com", "bob-pass")
    return alice.id, bob.id


# ── Accounts ─────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_register_lowercases_email_and_authenticates(accounts):
    user = await accounts.register("Carol@Example.COM", "carol-pass")
    assert user.email == "carol@example.com"

    assert (await accounts.authenticate("CAROL@example.com", "carol-pass")).id == user.id
    assert await accounts.authenticate("carol@example.com", "wrong") is None
    assert await accounts.register("carol@example.com", "other-pass") is None


@pytest.mark.asyncio
async def test_inactive_modules_are_never_granted(accounts):
    modules = await accounts.list_modules()
    assert [m.key for m in modules] == ["inventory", "funnel"]
    all_ids = [m.id for m in modules] + [3, 999]

    user = await accounts.register("dave@example.com", "dave-pass", module_ids=all_ids)
    assert sorted(m.key for m in user.modules) == ["funnel", "inventory"]

    replaced = await accounts.set_user_modules(user.id, [3])
    assert replaced == []
    assert await accounts.user_modules(user.id) == []


@pytest.mark.asyncio
async def test_register_race_on_unique_email_returns_none(accounts, monkeypatch):
    await accounts.register("erin@example.com", "erin-pass")

    async def not_taken(session, email):
        return False

    monkeypatch.setattr(accounts, "_email_taken", not_taken)
    assert await accounts.register("erin@example.com", "erin-pass") is None


@pytest.mark.asyncio
async def test_delete_user_and_unknown_ids(accounts, owners):
    alice_id, bob_id = owners
    assert await accounts.delete_user(bob_id) is True
    assert await accounts.get_user(bob_id) is None
    assert await accounts.delete_user(bob_id) is False
    assert await accounts.get_user("not-a-uuid") is None
    assert await accounts.update_password(alice_id, "new-pass-1") is True
    assert await accounts.authenticate("alice@example.com", "new-pass-1") is not None


# ── Deals ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_deals_are_isolated_by_owner(session_factory, owners):
    alice_id, bob_id = owners
    repo = DealRepository(session_factory)
    deal = await repo.create_deal(alice_id, DealCreate(title="Website", value=100))

    assert await repo.get_deal(bob_id, deal.id) is None
    assert await repo.list_deals(bob_id) == []
    with pytest.raises(RecordNotFoundError):
        await repo.update_deal(bob_id, deal.id, DealUpdate(title="Stolen"))
    with pytest.raises(RecordNotFoundError):
        await repo.change_status(bob_id, deal.id, DealStatus.CLOSED)
    with pytest.raises(RecordNotFoundError):
        await repo.set_archived(bob_id, deal.id, True)
    with pytest.raises(RecordNotFoundError):
        await repo.delete_deal(bob_id, deal.id)

    unchanged = await repo.get_deal(alice_id, deal.id)
    assert unchanged.title == "Website"
    assert unchanged.status == DealStatus.LEAD


@pytest.mark.asyncio
async def test_create_defaults_gross_and_net_to_value(session_factory, owners):
    alice_id, _ = owners
    repo = DealRepository(session_factory)
    deal = await repo.create_deal(alice_id, DealCreate(title="X", value=250, net_value=200))
    assert deal.gross_value == 250.0
    assert deal.net_value == 200.0


@pytest.mark.asyncio
async def test_partial_update_is_written_back(session_factory, owners):
    alice_id, _ = owners
    repo = DealRepository(session_factory)
    deal = await repo.create_deal(
        alice_id,
        DealCreate(title="Support", company="Globex", value=100, notes="call back"),
    )

    patch = DealUpdate.model_validate(
        {"value": 300, "notes": None, "title": None, "paymentMethod": PaymentMethod.PIX}
    )
    await repo.update_deal(alice_id, deal.id, patch)

    stored = await repo.get_deal(alice_id, deal.id)
    assert stored.title == "Support"
    assert stored.company == "Globex"
    assert stored.notes is None
    assert stored.value == 300.0
    assert stored.payment_method == PaymentMethod.PIX


@pytest.mark.asyncio
async def test_archive_round_trip(session_factory, owners):
    alice_id, _ = owners
    repo = DealRepository(session_factory)
    deal = await repo.create_deal(alice_id, DealCreate(title="Migration", value=10))

    archived = await repo.set_archived(alice_id, deal.id, True)
    assert archived.is_archived is True
    assert archived.archived_at is not None
    assert await repo.list_deals(alice_id) == []
    assert [d.id for d in await repo.list_archived_deals(alice_id)] == [deal.id]

    restored = await repo.set_archived(alice_id, deal.id, False)
    assert restored.is_archived is False
    assert restored.archived_at is None
    assert [d.id for d in await repo.list_deals(alice_id)] == [deal.id]
    assert await repo.list_archived_deals(alice_id) == []


@pytest.mark.asyncio
async def test_status_change_and_delete(session_factory, owners):
    alice_id, _ = owners
    repo = DealRepository(session_factory)
    deal = await repo.create_deal(alice_id, DealCreate(title="Hardware", value=10))

    closed = await repo.change_status(alice_id, deal.id, DealStatus.CLOSED)
    assert closed.status == DealStatus.CLOSED

    await repo.delete_deal(alice_id, deal.id)
    assert await repo.get_deal(alice_id, deal.id) is None


# ── Inventory ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_exit_beyond_stock_leaves_quantity_unchanged(session_factory, owners):
    alice_id, _ = owners
    repo = InventoryRepository(session_factory)
    item = await repo.create_item(alice_id, InventoryItemCreate(name="Paper", quantity=5))

    with pytest.raises(InsufficientStockError):
        await repo.record_movement(alice_id, item.id, MovementDirection.EXIT, 6)
    assert (await repo.get_item(alice_id, item.id)).quantity == 5.0

    assert await repo.record_movement(alice_id, item.id, MovementDirection.ENTRY, 2.5) == 7.5
    assert await repo.record_movement(alice_id, item.id, MovementDirection.EXIT, 7.5) == 0.0
    assert (await repo.get_item(alice_id, item.id)).quantity == 0.0


@pytest.mark.asyncio
async def test_inventory_is_isolated_by_owner(session_factory, owners):
    alice_id, bob_id = owners
    repo = InventoryRepository(session_factory)
    item = await repo.create_item(alice_id, InventoryItemCreate(name="Toner", quantity=3))

    assert await repo.get_item(bob_id, item.id) is None
    assert await repo.list_items(bob_id) == []
    with pytest.raises(RecordNotFoundError):
        await repo.update_item(bob_id, item.id, InventoryItemCreate(name="Mine now"))
    with pytest.raises(RecordNotFoundError):
        await repo.record_movement(bob_id, item.id, MovementDirection.EXIT, 1)
    with pytest.raises(RecordNotFoundError):
        await repo.delete_item(bob_id, item.id)
    assert (await repo.get_item(alice_id, item.id)).quantity == 3.0


@pytest.mark.asyncio
async def test_items_listed_by_name(session_factory, owners):
    alice_id, _ = owners
    repo = InventoryRepository(session_factory)
    await repo.create_item(alice_id, InventoryItemCreate(name="Toner", quantity=1, min_quantity=2))
    await repo.create_item(alice_id, InventoryItemCreate(name="Paper", quantity=10))

    items = await repo.list_items(alice_id)
    assert [i.name for i in items] == ["Paper", "Toner"]
    assert [i.low_stock for i in items] == [False, True]


# ── SubLocations ─────────────────────────────────────────────────────────────


def _sublocation(**overrides) -> SubLocationCreate:
    fields = {
        "title": "Meeting room",
        "service_value": 1000,
        "discount_percentage": 10,
        "service_date": "2026-03-05T10:00:00Z",
    }
    fields.update(overrides)
    return SubLocationCreate(**fields)


@pytest.mark.asyncio
async def test_sublocation_derived_values_are_persisted(session_factory, owners):
    alice_id, _ = owners
    repo = SubLocationRepository(session_factory)
    created = await repo.create_sublocation(alice_id, _sublocation())

    stored = await repo.get_sublocation(alice_id, created.id)
    assert (stored.discount_value, stored.net_value) == (100.0, 900.0)

    await repo.update_sublocation(
        alice_id, created.id, _sublocation(service_value=2000, discount_percentage=25)
    )
    stored = await repo.get_sublocation(alice_id, created.id)
    assert (stored.discount_value, stored.net_value) == (500.0, 1500.0)


@pytest.mark.asyncio
async def test_sublocations_are_isolated_by_owner(session_factory, owners):
    alice_id, bob_id = owners
    repo = SubLocationRepository(session_factory)
    created = await repo.create_sublocation(alice_id, _sublocation())

    assert await repo.get_sublocation(bob_id, created.id) is None
    assert await repo.list_sublocations(bob_id) == []
    with pytest.raises(RecordNotFoundError):
        await repo.update_sublocation(bob_id, created.id, _sublocation(title="Mine now"))
    with pytest.raises(RecordNotFoundError):
        await repo.delete_sublocation(bob_id, created.id)

    await repo.delete_sublocation(alice_id, created.id)
    assert await repo.get_sublocation(alice_id, created.id) is None
