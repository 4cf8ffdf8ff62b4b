"""Pydantic schemas for the deal pipeline API.

Enums are IntEnums so they travel as their integer values on the wire
(Lead=0 ... Closed=4). All payloads use camelCase aliases via CamelModel.

DealUpdate carries patch semantics: only fields present in the request
body (model_fields_set) are applied. See deals/repository.py for how an
explicit null is interpreted per field.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import EmailStr, Field, field_validator

from src.funnel.schemas.base import CamelModel


# ── Enums ───────────────────────────────────────────────────────────────────


class DealStatus(IntEnum):
    """Pipeline stages, in funnel order."""

    LEAD = 0
    QUALIFIED = 1
    PROPOSAL = 2
    NEGOTIATION = 3
    CLOSED = 4


class Priority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2


class PaymentMethod(IntEnum):
    CARD = 0
    PIX = 1
    BANK_SLIP = 2
    CASH = 3

    @property
    def label(self) -> str:
        """Display name used as the key in revenue breakdowns."""
        return _PAYMENT_METHOD_LABELS[self]


_PAYMENT_METHOD_LABELS = {
    PaymentMethod.CARD: "Card",
    PaymentMethod.PIX: "Pix",
    PaymentMethod.BANK_SLIP: "BankSlip",
    PaymentMethod.CASH: "Cash",
}


# ── Validators ──────────────────────────────────────────────────────────────


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require_title(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


# ── Requests ────────────────────────────────────────────────────────────────


class DealCreate(CamelModel):
    """Body of POST /api/deals. gross/net fall back to value when omitted or zero."""

    title: str = Field(..., max_length=255)
    company: str | None = Field(default=None, max_length=255)
    contact_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    value: float = Field(default=0.0, ge=0)
    gross_value: float | None = Field(default=None, ge=0)
    net_value: float | None = Field(default=None, ge=0)
    status: DealStatus = DealStatus.LEAD
    priority: Priority = Priority.MEDIUM
    payment_method: PaymentMethod | None = None
    expected_close_date: datetime | None = None
    payment_date: datetime | None = None
    birthday: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v: object) -> object:
        return _blank_to_none(v)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _require_title(v)


class DealUpdate(CamelModel):
    """Body of PUT /api/deals/{id}. Every field is optional."""

    title: str | None = Field(default=None, max_length=255)
    company: str | None = Field(default=None, max_length=255)
    contact_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    value: float | None = Field(default=None, ge=0)
    gross_value: float | None = Field(default=None, ge=0)
    net_value: float | None = Field(default=None, ge=0)
    status: DealStatus | None = None
    priority: Priority | None = None
    payment_method: PaymentMethod | None = None
    expected_close_date: datetime | None = None
    payment_date: datetime | None = None
    birthday: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v: object) -> object:
        return _blank_to_none(v)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        return _require_title(v)


class DealStatusUpdate(CamelModel):
    """Body of PATCH /api/deals/{id}/status."""

    status: DealStatus


# ── Responses ───────────────────────────────────────────────────────────────


class DealRead(CamelModel):
    """A persisted deal."""

    id: int
    user_id: str
    title: str
    company: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    value: float = 0.0
    gross_value: float = 0.0
    net_value: float = 0.0
    status: DealStatus = DealStatus.LEAD
    priority: Priority = Priority.MEDIUM
    payment_method: PaymentMethod | None = None
    expected_close_date: datetime | None = None
    payment_date: datetime | None = None
    birthday: datetime | None = None
    notes: str | None = None
    is_archived: bool = False
    archived_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DealsByStatus(CamelModel):
    status: DealStatus
    count: int
    deals: list[DealRead] = Field(default_factory=list)


class MonthlyRevenue(CamelModel):
    """Closed-deal revenue for one calendar month of payment date."""

    year: int
    month: int
    month_name: str
    gross_value: float
    net_value: float
    total_discounts: float
    total_deals: int
    revenue_by_payment_method: dict[str, float] = Field(default_factory=dict)


class Dashboard(CamelModel):
    """Pipeline totals over a user's non-archived deals."""

    total_deals: int
    closed_deals: int
    total_value: float
    closed_value: float
    total_gross_value: float
    total_net_value: float
    closed_gross_value: float
    closed_net_value: float
    deals_by_status: list[DealsByStatus]
    monthly_revenues: list[MonthlyRevenue]
