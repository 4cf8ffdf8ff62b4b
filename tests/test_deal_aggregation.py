"""Unit tests for dashboard and monthly revenue aggregation."""

from __future__ import annotations

from datetime import datetime, timezone

from src.funnel.deals.aggregation import build_dashboard, effective_gross, effective_net, monthly_revenues
from src.funnel.deals.schemas import DealRead, DealStatus, PaymentMethod


def _deal(deal_id: int, **kwargs) -> DealRead:
    fields = {"id": deal_id, "user_id": "u1", "title": f"Deal {deal_id}"}
    fields.update(kwargs)
    return DealRead(**fields)


def _paid(year: int, month: int, day: int = 15) -> datetime:
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


# ── Gross/Net Fallback ───────────────────────────────────────────────────────


def test_zero_gross_and_net_fall_back_to_value():
    deal = _deal(1, value=250.0, gross_value=0.0, net_value=0.0)
    assert effective_gross(deal) == 250.0
    assert effective_net(deal) == 250.0


def test_explicit_gross_and_net_are_kept():
    deal = _deal(1, value=250.0, gross_value=300.0, net_value=200.0)
    assert effective_gross(deal) == 300.0
    assert effective_net(deal) == 200.0


def test_dashboard_uses_fallback_in_totals():
    deals = [
        _deal(1, value=100.0),
        _deal(2, value=50.0, gross_value=60.0, net_value=40.0, status=DealStatus.CLOSED),
    ]
    dashboard = build_dashboard(deals)
    assert dashboard.total_value == 150.0
    assert dashboard.total_gross_value == 160.0
    assert dashboard.total_net_value == 140.0
    assert dashboard.closed_value == 50.0
    assert dashboard.closed_gross_value == 60.0
    assert dashboard.closed_net_value == 40.0


# ── Dashboard ────────────────────────────────────────────────────────────────


def test_empty_dashboard_has_every_status():
    dashboard = build_dashboard([])
    assert dashboard.total_deals == 0
    assert dashboard.closed_deals == 0
    assert [g.status for g in dashboard.deals_by_status] == list(DealStatus)
    assert all(g.count == 0 and g.deals == [] for g in dashboard.deals_by_status)
    assert dashboard.monthly_revenues == []


def test_deals_grouped_by_status_in_pipeline_order():
    deals = [
        _deal(1, status=DealStatus.PROPOSAL),
        _deal(2, status=DealStatus.LEAD),
        _deal(3, status=DealStatus.PROPOSAL),
        _deal(4, status=DealStatus.CLOSED, value=10.0),
    ]
    dashboard = build_dashboard(deals)
    counts = {g.status: g.count for g in dashboard.deals_by_status}
    assert counts == {
        DealStatus.LEAD: 1,
        DealStatus.QUALIFIED: 0,
        DealStatus.PROPOSAL: 2,
        DealStatus.NEGOTIATION: 0,
        DealStatus.CLOSED: 1,
    }
    proposal = dashboard.deals_by_status[DealStatus.PROPOSAL]
    assert [d.id for d in proposal.deals] == [1, 3]
    assert dashboard.total_deals == 4
    assert dashboard.closed_deals == 1


def test_closed_deal_without_payment_date_counts_in_totals_only():
    deals = [_deal(1, value=500.0, status=DealStatus.CLOSED, payment_date=None)]
    dashboard = build_dashboard(deals)
    assert dashboard.closed_deals == 1
    assert dashboard.closed_value == 500.0
    assert dashboard.monthly_revenues == []


def test_totals_are_rounded_to_cents():
    deals = [_deal(1, value=0.1), _deal(2, value=0.2)]
    assert build_dashboard(deals).total_value == 0.3


# ── Monthly Revenue ──────────────────────────────────────────────────────────


def test_monthly_revenue_groups_and_sorts_newest_first():
    deals = [
        _deal(1, value=100.0, status=DealStatus.CLOSED, payment_date=_paid(2025, 11)),
        _deal(2, value=200.0, status=DealStatus.CLOSED, payment_date=_paid(2026, 2)),
        _deal(3, value=300.0, status=DealStatus.CLOSED, payment_date=_paid(2026, 2, 28)),
        _deal(4, value=400.0, status=DealStatus.CLOSED, payment_date=_paid(2026, 1)),
    ]
    revenues = monthly_revenues(deals)
    assert [(r.year, r.month) for r in revenues] == [(2026, 2), (2026, 1), (2025, 11)]
    february = revenues[0]
    assert february.month_name == "February"
    assert february.total_deals == 2
    assert february.gross_value == 500.0


def test_monthly_revenue_ignores_open_deals():
    deals = [
        _deal(1, value=100.0, status=DealStatus.NEGOTIATION, payment_date=_paid(2026, 3)),
        _deal(2, value=100.0, status=DealStatus.CLOSED, payment_date=_paid(2026, 3)),
    ]
    revenues = monthly_revenues(deals)
    assert len(revenues) == 1
    assert revenues[0].total_deals == 1


def test_monthly_revenue_discounts_and_payment_methods():
    deals = [
        _deal(
            1,
            value=1000.0,
            gross_value=1000.0,
            net_value=900.0,
            status=DealStatus.CLOSED,
            payment_method=PaymentMethod.PIX,
            payment_date=_paid(2026, 4),
        ),
        _deal(
            2,
            value=500.0,
            status=DealStatus.CLOSED,
            payment_method=PaymentMethod.BANK_SLIP,
            payment_date=_paid(2026, 4),
        ),
        _deal(3, value=250.0, status=DealStatus.CLOSED, payment_date=_paid(2026, 4)),
    ]
    (april,) = monthly_revenues(deals)
    assert april.gross_value == 1750.0
    assert april.net_value == 1650.0
    assert april.total_discounts == 100.0
    assert april.revenue_by_payment_method == {
        "Pix": 900.0,
        "BankSlip": 500.0,
        "Unspecified": 250.0,
    }


def test_dashboard_serializes_camel_case():
    deals = [_deal(1, value=100.0, status=DealStatus.CLOSED, payment_date=_paid(2026, 5))]
    payload = build_dashboard(deals).model_dump(mode="json", by_alias=True)
    assert payload["totalDeals"] == 1
    assert payload["dealsByStatus"][4]["status"] == 4
    assert payload["monthlyRevenues"][0]["monthName"] == "May"
    assert payload["monthlyRevenues"][0]["revenueByPaymentMethod"] == {"Unspecified": 100.0}
