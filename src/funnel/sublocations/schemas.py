"""Pydantic schemas for the sublocation API."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from src.funnel.schemas.base import CamelModel


class SubLocationCreate(CamelModel):
    """Body of POST /api/sublocation and PUT /api/sublocation/{id}.

    Any discountValue/netValue sent by the client is ignored.
    """

    title: str = Field(..., max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    third_party_name: str | None = Field(default=None, max_length=255)
    service_value: float = Field(default=0.0, ge=0)
    discount_percentage: float = Field(default=0.0, ge=0, le=100)
    service_type: str | None = Field(default=None, max_length=100)
    service_date: datetime

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v


class SubLocationRead(CamelModel):
    id: int
    user_id: str
    title: str
    description: str | None = None
    third_party_name: str | None = None
    service_value: float = 0.0
    discount_percentage: float = 0.0
    discount_value: float = 0.0
    net_value: float = 0.0
    service_type: str | None = None
    service_date: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None
