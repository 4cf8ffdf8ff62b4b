"""Pydantic schemas for the inventory API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator, model_validator

from src.funnel.schemas.base import CamelModel


class MovementDirection(str, Enum):
    """Stock movement kind."""

    ENTRY = "entry"
    EXIT = "exit"


class InventoryItemCreate(CamelModel):
    """Body of POST /api/inventory and PUT /api/inventory/{id} (full replace)."""

    name: str = Field(..., max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    quantity: float = Field(default=0.0, ge=0)
    min_quantity: float = Field(default=0.0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)
    category: str | None = Field(default=None, max_length=100)
    supplier: str | None = Field(default=None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class InventoryItemRead(CamelModel):
    """A persisted inventory item. low_stock is derived, never stored."""

    id: int
    user_id: str
    name: str
    description: str | None = None
    quantity: float = 0.0
    min_quantity: float = 0.0
    unit_price: float = 0.0
    category: str | None = None
    supplier: str | None = None
    low_stock: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def derive_low_stock(self) -> InventoryItemRead:
        self.low_stock = self.quantity <= self.min_quantity
        return self


class MovementRequest(CamelModel):
    """Body of POST /api/inventory/{id}/entry and /exit."""

    quantity: float = Field(..., gt=0)
    notes: str | None = Field(default=None, max_length=500)


class MovementResponse(CamelModel):
    message: str
    new_quantity: float
