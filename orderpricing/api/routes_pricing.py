from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Query

from orderpricing.core.canonical import sha256_hex, to_canonical_obj
from orderpricing.core.config import get_settings
from orderpricing.domain.pricing.deals import allocate_free_units, group_items
from orderpricing.domain.pricing.labels import describe_line_item, get_discount_label
from orderpricing.domain.pricing.models import DealGroup
from orderpricing.domain.pricing.normalizer import normalize
from orderpricing.domain.pricing.totals import compute_cart_totals, compute_totals
from orderpricing.reconciliation.rules import run_pricing_reconciliation

router = APIRouter(tags=["pricing"])


def _serialize_group(group: DealGroup) -> dict[str, Any]:
    allocation = allocate_free_units(group)
    return {
        "id": group.id,
        "kind": group.kind,
        "label": group.label,
        "discount_label": get_discount_label(group.discount) if group.discount is not None else None,
        "bundle_get_product_ids": list(group.bundle_get_product_ids),
        "generic_buy_qty": group.generic_buy_qty,
        "generic_get_qty": group.generic_get_qty,
        "allocation": to_canonical_obj(allocation),
        "items": [
            {
                "item": to_canonical_obj(item),
                "pricing": to_canonical_obj(describe_line_item(item)),
                "free_units": allocation.free_units[index] if allocation.free_units else 0,
            }
            for index, item in enumerate(group.items)
        ],
    }


@router.post("/pricing/totals")
def post_totals(order: dict[str, Any] = Body(...)):
    totals = compute_totals(normalize(order))
    return {
        "currency": get_settings().default_currency,
        "totals": to_canonical_obj(totals),
        "discount_labels": [get_discount_label(d) for d in (*totals.promotion_discounts, *totals.coupon_discounts)],
        "fingerprint": sha256_hex(totals),
    }


@router.post("/pricing/cart-totals")
def post_cart_totals(
    cart: dict[str, Any] = Body(...),
    total_override: str | None = Query(default=None, description="replaces the persisted cart total"),
):
    result = compute_cart_totals(cart, total_after_discounts_override=total_override)
    return {
        "currency": get_settings().default_currency,
        "totals": to_canonical_obj(result.totals),
        "sum_all_discounts": to_canonical_obj(result.sum_all_discounts),
        "cart_discount_amount": to_canonical_obj(result.cart_discount_amount),
    }


@router.post("/pricing/groups")
def post_groups(order: dict[str, Any] = Body(...)):
    groups = group_items(order)
    return {"count": len(groups), "groups": [_serialize_group(group) for group in groups]}


@router.post("/pricing/reconcile")
def post_reconcile(order: dict[str, Any] = Body(...)):
    results = run_pricing_reconciliation(order)
    return {
        "all_passed": all(result.passed for result in results),
        "results": [result.__dict__ for result in results],
    }
