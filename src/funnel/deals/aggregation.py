"""Dashboard and monthly revenue aggregation over a user's deals.

Pure functions, no I/O. The caller passes the user's non-archived deals;
every aggregate is recomputed from scratch on each call.

A gross or net value of zero means "not set" and falls back to the deal's
base value everywhere in this module.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable

from src.funnel.deals.schemas import (
    Dashboard,
    DealRead,
    DealsByStatus,
    DealStatus,
    MonthlyRevenue,
)

UNSPECIFIED_PAYMENT_METHOD = "Unspecified"


def effective_gross(deal: DealRead) -> float:
    """Gross value, falling back to value when unset."""
    return deal.gross_value or deal.value


def effective_net(deal: DealRead) -> float:
    """Net value, falling back to value when unset."""
    return deal.net_value or deal.value


def _money(amount: float) -> float:
    return round(amount, 2)


def monthly_revenues(deals: Iterable[DealRead]) -> list[MonthlyRevenue]:
    """Group closed deals with a payment date by (year, month) of payment.

    Groups are returned newest first. Deals without a payment method are
    counted under "Unspecified" in the per-method breakdown.
    """
    buckets: dict[tuple[int, int], list[DealRead]] = {}
    for deal in deals:
        if deal.status != DealStatus.CLOSED or deal.payment_date is None:
            continue
        key = (deal.payment_date.year, deal.payment_date.month)
        buckets.setdefault(key, []).append(deal)

    revenues = []
    for (year, month), group in sorted(buckets.items(), reverse=True):
        gross = sum(effective_gross(d) for d in group)
        net = sum(effective_net(d) for d in group)

        by_method: dict[str, float] = {}
        for deal in group:
            method = deal.payment_method.label if deal.payment_method is not None else UNSPECIFIED_PAYMENT_METHOD
            by_method[method] = by_method.get(method, 0.0) + effective_net(deal)

        revenues.append(
            MonthlyRevenue(
                year=year,
                month=month,
                month_name=calendar.month_name[month],
                gross_value=_money(gross),
                net_value=_money(net),
                total_discounts=_money(gross - net),
                total_deals=len(group),
                revenue_by_payment_method={k: _money(v) for k, v in by_method.items()},
            )
        )
    return revenues


def build_dashboard(deals: Iterable[DealRead]) -> Dashboard:
    """Compute pipeline totals, per-status groups, and monthly revenue.

    Args:
        deals: The user's non-archived deals. Archived deals must already
            be filtered out by the caller.

    Returns:
        Dashboard with one DealsByStatus entry for every pipeline stage,
        in funnel order, including empty stages.
    """
    deals = list(deals)
    closed = [d for d in deals if d.status == DealStatus.CLOSED]

    by_status = {status: [] for status in DealStatus}
    for deal in deals:
        by_status[deal.status].append(deal)

    return Dashboard(
        total_deals=len(deals),
        closed_deals=len(closed),
        total_value=_money(sum(d.value for d in deals)),
        closed_value=_money(sum(d.value for d in closed)),
        total_gross_value=_money(sum(effective_gross(d) for d in deals)),
        total_net_value=_money(sum(effective_net(d) for d in deals)),
        closed_gross_value=_money(sum(effective_gross(d) for d in closed)),
        closed_net_value=_money(sum(effective_net(d) for d in closed)),
        deals_by_status=[
            DealsByStatus(status=status, count=len(group), deals=group)
            for status, group in by_status.items()
        ],
        monthly_revenues=monthly_revenues(deals),
    )
