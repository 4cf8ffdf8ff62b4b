"""Account service -- users, credentials, roles, and module entitlements.

The single place that touches User, Module and UserModule rows. Routers and
the get_current_user dependency reach it through app.state.account_service.

Lookups by user id accept the string form used in JWT subjects and path
parameters; a malformed id is treated the same as an unknown one.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.funnel.core.security import ROLE_USER, hash_password, verify_password
from src.funnel.models.users import Module, User, UserModule
from src.funnel.schemas.auth import UserResponse
from src.funnel.schemas.modules import ModuleRead

logger = structlog.get_logger(__name__)


def _parse_user_id(user_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        return None


def _module_to_read(module: Module) -> ModuleRead:
    return ModuleRead(
        id=module.id,
        name=module.name,
        description=module.description,
        key=module.key,
        is_active=module.is_active,
        created_at=module.created_at,
    )


def _user_to_response(user: User, modules: list[ModuleRead]) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        modules=modules,
    )


class AccountService:
    """Authentication and account administration.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def _modules_for(self, session: AsyncSession, user_id: uuid.UUID) -> list[ModuleRead]:
        stmt = (
            select(Module)
            .join(UserModule, UserModule.module_id == Module.id)
            .where(UserModule.user_id == user_id, Module.is_active.is_(True))
            .order_by(Module.name)
        )
        result = await session.execute(stmt)
        return [_module_to_read(m) for m in result.scalars().all()]

    async def _grant(self, session: AsyncSession, user_id: uuid.UUID, module_ids: list[int]) -> None:
        """Add grants for the active modules among module_ids; others are skipped."""
        if not module_ids:
            return
        result = await session.execute(
            select(Module.id).where(Module.id.in_(set(module_ids)), Module.is_active.is_(True))
        )
        for module_id in result.scalars().all():
            session.add(UserModule(user_id=user_id, module_id=module_id))

    async def _email_taken(self, session: AsyncSession, email: str) -> bool:
        result = await session.execute(select(User.id).where(User.email == email))
        return result.scalar_one_or_none() is not None

    # ── Authentication ──────────────────────────────────────────────────────

    async def authenticate(self, email: str, password: str) -> UserResponse | None:
        """Return the active user matching the credentials, or None."""
        async for session in self._session_factory():
            result = await session.execute(
                select(User).where(
                    User.email == email.lower(),
                    User.is_active.is_(True),
                )
            )
            user = result.scalar_one_or_none()
            if user is None or not verify_password(password, user.hashed_password):
                logger.info("auth.login_failed", email=email)
                return None
            return _user_to_response(user, await self._modules_for(session, user.id))

    async def get_user(self, user_id: str) -> UserResponse | None:
        """Return the active user with this id, or None."""
        parsed = _parse_user_id(user_id)
        if parsed is None:
            return None
        async for session in self._session_factory():
            result = await session.execute(
                select(User).where(User.id == parsed, User.is_active.is_(True))
            )
            user = result.scalar_one_or_none()
            if user is None:
                return None
            return _user_to_response(user, await self._modules_for(session, user.id))

    @staticmethod
    def has_role(user: UserResponse, role: str) -> bool:
        return user.role == role

    # ── Users ───────────────────────────────────────────────────────────────

    async def register(
        self,
        email: str,
        password: str,
        role: str = ROLE_USER,
        module_ids: list[int] | None = None,
    ) -> UserResponse | None:
        """Create a user and grant the requested modules.

        Returns:
            The new user, or None if the email is already registered.
        """
        email = email.lower()
        async for session in self._session_factory():
            if await self._email_taken(session, email):
                logger.info("auth.register_conflict", email=email)
                return None

            user = User(
                id=uuid.uuid4(),
                email=email,
                hashed_password=hash_password(password),
                role=role,
                is_active=True,
            )
            session.add(user)
            try:
                await session.flush()
                await self._grant(session, user.id, module_ids or [])
                await session.commit()
            except IntegrityError:
                # Lost a race with a concurrent registration of the same email
                await session.rollback()
                logger.info("auth.register_conflict", email=email)
                return None
            await session.refresh(user)
            logger.info("auth.user_registered", user_id=str(user.id), role=role)
            return _user_to_response(user, await self._modules_for(session, user.id))

    async def list_users(self) -> list[UserResponse]:
        """All users ordered by email, each with their modules."""
        async for session in self._session_factory():
            result = await session.execute(select(User).order_by(User.email))
            users = result.scalars().all()
            return [
                _user_to_response(u, await self._modules_for(session, u.id)) for u in users
            ]

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user and, by cascade, everything they own."""
        parsed = _parse_user_id(user_id)
        if parsed is None:
            return False
        async for session in self._session_factory():
            user = await session.get(User, parsed)
            if user is None:
                return False
            await session.delete(user)
            await session.commit()
            logger.info("auth.user_deleted", user_id=user_id)
            return True

    async def update_password(self, user_id: str, new_password: str) -> bool:
        parsed = _parse_user_id(user_id)
        if parsed is None:
            return False
        async for session in self._session_factory():
            user = await session.get(User, parsed)
            if user is None:
                return False
            user.hashed_password = hash_password(new_password)
            await session.commit()
            logger.info("auth.password_updated", user_id=user_id)
            return True

    # ── Modules ─────────────────────────────────────────────────────────────

    async def list_modules(self) -> list[ModuleRead]:
        """Active modules ordered by name."""
        async for session in self._session_factory():
            result = await session.execute(
                select(Module).where(Module.is_active.is_(True)).order_by(Module.name)
            )
            return [_module_to_read(m) for m in result.scalars().all()]

    async def user_modules(self, user_id: str) -> list[ModuleRead] | None:
        """Modules granted to a user, or None if the user does not exist."""
        parsed = _parse_user_id(user_id)
        if parsed is None:
            return None
        async for session in self._session_factory():
            if await session.get(User, parsed) is None:
                return None
            return await self._modules_for(session, parsed)

    async def set_user_modules(self, user_id: str, module_ids: list[int]) -> list[ModuleRead] | None:
        """Replace a user's grants with exactly the given active modules.

        Unknown or inactive module ids are ignored.

        Returns:
            The user's modules after the change, or None if the user does not exist.
        """
        parsed = _parse_user_id(user_id)
        if parsed is None:
            return None
        async for session in self._session_factory():
            if await session.get(User, parsed) is None:
                return None
            await session.execute(delete(UserModule).where(UserModule.user_id == parsed))
            await self._grant(session, parsed, module_ids)
            await session.commit()
            modules = await self._modules_for(session, parsed)
            logger.info(
                "auth.modules_updated",
                user_id=user_id,
                modules=[m.key for m in modules],
            )
            return modules
