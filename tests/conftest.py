"""Shared fixtures for API tests.

Builds the real application with create_app() (exception handlers and
middleware included) but never runs its lifespan: tests put in-memory
repositories on app.state and replace get_current_user through
dependency_overrides.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.funnel.api.deps import get_current_user
from src.funnel.main import create_app
from src.funnel.schemas.auth import UserResponse

ALICE = UserResponse(
    id="6a1f0d3e-0c5b-4b8e-9d55-5d7f4f1e2a01",
    email="alice@example.com",
    role="User",
)
BOB = UserResponse(
    id="0b7e51c2-8f0e-4d0c-a7a1-3c9b2f6d4e02",
    email="bob@example.com",
    role="User",
)
ADMIN = UserResponse(
    id="c4d2a9e8-1b3f-4e6a-8c7d-9e0f1a2b3c03",
    email="admin@example.com",
    role="Admin",
)


@pytest.fixture
def alice() -> UserResponse:
    return ALICE


@pytest.fixture
def bob() -> UserResponse:
    return BOB


@pytest.fixture
def admin() -> UserResponse:
    return ADMIN


@pytest.fixture
def app() -> FastAPI:
    """Application authenticated as alice by default."""
    application = create_app()
    application.dependency_overrides[get_current_user] = lambda: ALICE
    return application


@pytest.fixture
def act_as(app) -> Callable[[UserResponse], None]:
    """Authenticate every following request as the given user."""

    def _act_as(user: UserResponse) -> None:
        app.dependency_overrides[get_current_user] = lambda: user

    return _act_as


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
