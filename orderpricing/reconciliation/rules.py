from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from orderpricing.domain.pricing.models import ZERO, NormalizedOrder, PricingTotals
from orderpricing.domain.pricing.normalizer import SYNTHETIC_DISCOUNT_ID, normalize
from orderpricing.domain.pricing.totals import compute_totals

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    rule: str
    passed: bool
    detail: str


def check_totals_consistent(totals: PricingTotals) -> ReconciliationResult:
    derived = totals.total_before_discounts - totals.total_discounts
    passed = derived == totals.total_after_discounts
    return ReconciliationResult(
        rule="totals_consistent",
        passed=passed,
        detail=f"before={totals.total_before_discounts}, discounts={totals.total_discounts}, "
        f"after={totals.total_after_discounts}",
    )


def check_savings_non_negative(totals: PricingTotals) -> ReconciliationResult:
    buckets = {
        "sale_savings": totals.sale_savings,
        "promotion_savings": totals.promotion_savings,
        "promotion_discount": totals.promotion_discount,
        "coupon_discount": totals.coupon_discount,
        "other_discount": totals.other_discount,
        "total_discounts": totals.total_discounts,
    }
    negative = sorted(name for name, value in buckets.items() if value < 0)
    if negative:
        return ReconciliationResult(
            rule="savings_non_negative",
            passed=False,
            detail="negative buckets: " + ", ".join(negative),
        )
    return ReconciliationResult(rule="savings_non_negative", passed=True, detail="ok")


def check_discount_lines_match_amount(order: NormalizedOrder) -> ReconciliationResult:
    itemized = [d for d in order.discounts if d.id != SYNTHETIC_DISCOUNT_ID]
    if not itemized:
        return ReconciliationResult(
            rule="discount_lines_match_amount",
            passed=True,
            detail=f"no itemized discounts, discount_amount={order.discount_amount}",
        )

    line_total = sum((d.amount for d in itemized), ZERO)
    passed = line_total == order.discount_amount
    return ReconciliationResult(
        rule="discount_lines_match_amount",
        passed=passed,
        detail=f"discount_lines={line_total}, discount_amount={order.discount_amount}",
    )


def check_invoice_round_trip(order: NormalizedOrder) -> ReconciliationResult:
    expected: Decimal = order.subtotal - order.discount_amount + order.shipping_amount + order.tax_amount
    passed = expected == order.total_amount
    return ReconciliationResult(
        rule="invoice_round_trip",
        passed=passed,
        detail=f"subtotal-discount+shipping+tax={expected}, total={order.total_amount}",
    )


def run_pricing_reconciliation(raw: Any) -> list[ReconciliationResult]:
    order = normalize(raw)
    totals = compute_totals(order)
    results = [
        check_totals_consistent(totals),
        check_savings_non_negative(totals),
        check_discount_lines_match_amount(order),
        check_invoice_round_trip(order),
    ]
    for result in results:
        if not result.passed:
            logger.warning("pricing reconciliation failed: rule=%s %s", result.rule, result.detail)
    return results
