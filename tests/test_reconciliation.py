from __future__ import annotations

import logging

from orderpricing.domain.pricing.normalizer import normalize
from orderpricing.domain.pricing.totals import compute_totals
from orderpricing.reconciliation.rules import (
    check_discount_lines_match_amount,
    check_invoice_round_trip,
    check_totals_consistent,
    run_pricing_reconciliation,
)


def test_reconciliation_passes_for_consistent_order(bxgy_order):
    results = run_pricing_reconciliation(bxgy_order)
    assert [r.rule for r in results] == [
        "totals_consistent",
        "savings_non_negative",
        "discount_lines_match_amount",
        "invoice_round_trip",
    ]
    assert all(r.passed for r in results)


def test_discount_amount_mismatch_is_flagged_not_altered(caplog):
    raw = {
        "subtotal": 100,
        "discountAmount": 15,
        "totalAmount": 85,
        "appliedDiscounts": [{"id": "c", "code": "TEN", "amount": 10}],
    }
    order = normalize(raw)
    result = check_discount_lines_match_amount(order)
    assert not result.passed
    assert "discount_lines=10" in result.detail

    with caplog.at_level(logging.WARNING, logger="orderpricing.reconciliation.rules"):
        results = run_pricing_reconciliation(raw)
    assert {r.rule for r in results if not r.passed} == {"discount_lines_match_amount"}
    assert "discount_lines_match_amount" in caplog.text
    assert compute_totals(order).other_discount == 5


def test_synthetic_discount_is_not_treated_as_itemized():
    order = normalize({"discountAmount": 4, "subtotal": 10, "totalAmount": 6})
    assert check_discount_lines_match_amount(order).passed
    assert check_invoice_round_trip(order).passed


def test_invoice_round_trip_detects_bad_total():
    order = normalize({"subtotal": 10, "shippingAmount": 2, "taxAmount": 1, "totalAmount": 20})
    assert not check_invoice_round_trip(order).passed
    assert check_totals_consistent(compute_totals(order)).passed
