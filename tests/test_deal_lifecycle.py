"""Tests for deal request schemas and patch application."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.funnel.deals.repository import deal_changes, resolve_amounts
from src.funnel.deals.schemas import (
    DealCreate,
    DealRead,
    DealStatus,
    DealUpdate,
    PaymentMethod,
    Priority,
)


def _existing(**kwargs) -> DealRead:
    fields = {
        "id": 1,
        "user_id": "u1",
        "title": "Existing",
        "company": "Acme",
        "value": 100.0,
        "gross_value": 100.0,
        "net_value": 100.0,
        "notes": "call back",
    }
    fields.update(kwargs)
    return DealRead(**fields)


# ── Create Schema ────────────────────────────────────────────────────────────


def test_create_accepts_camel_case_and_integer_enums():
    data = DealCreate.model_validate(
        {"title": "X", "value": 100, "contactName": "Ann", "status": 2, "paymentMethod": 1}
    )
    assert data.contact_name == "Ann"
    assert data.status is DealStatus.PROPOSAL
    assert data.payment_method is PaymentMethod.PIX
    assert data.priority is Priority.MEDIUM


def test_create_requires_title():
    with pytest.raises(ValidationError):
        DealCreate.model_validate({"value": 10})


def test_create_rejects_blank_title():
    with pytest.raises(ValidationError):
        DealCreate.model_validate({"title": "   "})


def test_create_rejects_unknown_status():
    with pytest.raises(ValidationError):
        DealCreate.model_validate({"title": "X", "status": 9})


def test_create_rejects_long_notes():
    with pytest.raises(ValidationError):
        DealCreate.model_validate({"title": "X", "notes": "n" * 2001})


def test_create_validates_email_and_blanks_it():
    with pytest.raises(ValidationError):
        DealCreate.model_validate({"title": "X", "email": "not-an-email"})
    assert DealCreate.model_validate({"title": "X", "email": ""}).email is None


# ── Amount Defaults ──────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("gross", "net", "expected"),
    [
        (None, None, (100.0, 100.0)),
        (0.0, 0.0, (100.0, 100.0)),
        (120.0, None, (120.0, 100.0)),
        (120.0, 90.0, (120.0, 90.0)),
    ],
)
def test_resolve_amounts(gross, net, expected):
    assert resolve_amounts(100.0, gross, net) == expected


# ── Patch Semantics ──────────────────────────────────────────────────────────


def test_absent_fields_are_unchanged():
    changes = deal_changes(_existing(), DealUpdate.model_validate({"title": "Renamed"}))
    assert changes == {"title": "Renamed"}


def test_null_clears_nullable_fields():
    patch = DealUpdate.model_validate({"company": None, "notes": None, "paymentDate": None})
    changes = deal_changes(_existing(), patch)
    assert changes == {"company": None, "notes": None, "payment_date": None}


def test_null_leaves_required_fields_unchanged():
    patch = DealUpdate.model_validate(
        {"title": None, "value": None, "status": None, "priority": None, "grossValue": None}
    )
    assert deal_changes(_existing(), patch) == {}


def test_zero_gross_falls_back_to_new_value():
    patch = DealUpdate.model_validate({"value": 300, "grossValue": 0, "netValue": 0})
    changes = deal_changes(_existing(), patch)
    assert changes["value"] == 300
    assert changes["gross_value"] == 300
    assert changes["net_value"] == 300


def test_explicit_amounts_are_applied():
    patch = DealUpdate.model_validate({"grossValue": 150, "netValue": 120})
    changes = deal_changes(_existing(), patch)
    assert changes == {"gross_value": 150, "net_value": 120}


def test_previously_unset_amounts_fall_back_after_patch():
    existing = _existing(gross_value=0.0, net_value=0.0)
    changes = deal_changes(existing, DealUpdate.model_validate({"status": 4}))
    assert changes["status"] is DealStatus.CLOSED
    assert changes["gross_value"] == 100.0
    assert changes["net_value"] == 100.0


def test_patch_sets_dates():
    when = datetime(2026, 3, 1, tzinfo=timezone.utc)
    patch = DealUpdate.model_validate({"paymentDate": when.isoformat()})
    assert deal_changes(_existing(), patch) == {"payment_date": when}


def test_invalid_patch_is_rejected_whole():
    with pytest.raises(ValidationError):
        DealUpdate.model_validate({"title": "Fine", "email": "broken"})
