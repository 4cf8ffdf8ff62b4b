"""Pydantic schemas for module entitlement endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from src.funnel.schemas.base import CamelModel


class ModuleRead(CamelModel):
    id: int
    name: str
    description: str | None = None
    key: str
    is_active: bool = True
    created_at: datetime | None = None


class UpdateUserModulesRequest(CamelModel):
    """Replaces a user's module grants with exactly these module ids."""

    module_ids: list[int] = Field(default_factory=list)
