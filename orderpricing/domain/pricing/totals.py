"""Order/cart totals reconciliation.

``compute_totals`` decomposes the persisted aggregates of an order into
separately reported savings sources. The persisted ``subtotal`` already
reflects promotional unit prices and the persisted ``total_amount`` is the
contractual total, so neither is recomputed here. Values are not rounded.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable

from orderpricing.domain.pricing.models import (
    ZERO,
    DiscountCategory,
    DiscountKind,
    DiscountLine,
    LineItem,
    NormalizedOrder,
    PricingTotals,
    get_compare_at_price,
    get_reference_price,
    is_gift_item,
    safe_number,
)
from orderpricing.domain.pricing.normalizer import normalize

LABELLED_DISCOUNT_KINDS = frozenset({DiscountKind.STANDARD, DiscountKind.BXGY_BUNDLE, DiscountKind.BXGY_GENERIC})


@dataclass(frozen=True)
class DiscountSplit:
    promotion_discounts: tuple[DiscountLine, ...]
    coupon_discounts: tuple[DiscountLine, ...]
    other_discounts: tuple[DiscountLine, ...]
    promotion_discount: Decimal
    coupon_discount: Decimal
    other_discount: Decimal


@dataclass(frozen=True)
class CartTotals:
    totals: PricingTotals
    sum_all_discounts: Decimal
    cart_discount_amount: Decimal


def _append_unique(names: list[str], name: str | None) -> None:
    text = (name or "").strip()
    if text and text not in names:
        names.append(text)


def compute_sale_savings(items: Iterable[LineItem]) -> Decimal:
    savings = ZERO
    for item in items:
        if item.quantity <= 0 or is_gift_item(item):
            continue
        ref = get_reference_price(item)
        compare_at = get_compare_at_price(item)
        if ref <= 0 or compare_at <= ref:
            continue
        savings += (compare_at - ref) * item.quantity
    return savings


def compute_promotion_savings(items: Iterable[LineItem]) -> tuple[Decimal, tuple[str, ...]]:
    savings = ZERO
    names: list[str] = []
    for item in items:
        if item.quantity <= 0:
            continue
        ref = get_reference_price(item)
        if ref <= 0:
            continue
        if is_gift_item(item):
            savings += ref * item.quantity
            continue
        unit = item.unit_price
        if unit <= 0 or unit >= ref:
            continue
        savings += (ref - unit) * item.quantity
        _append_unique(names, item.promotion_name)
    return savings, tuple(names)


def _sum_amounts(discounts: Iterable[DiscountLine]) -> Decimal:
    return sum((max(ZERO, d.amount) for d in discounts), ZERO)


def split_applied_discounts(discounts: Iterable[DiscountLine]) -> DiscountSplit:
    buckets: dict[DiscountCategory, list[DiscountLine]] = {category: [] for category in DiscountCategory}
    for discount in discounts:
        buckets[discount.category].append(discount)

    return DiscountSplit(
        promotion_discounts=tuple(buckets[DiscountCategory.PROMOTION]),
        coupon_discounts=tuple(buckets[DiscountCategory.COUPON]),
        other_discounts=tuple(buckets[DiscountCategory.OTHER]),
        promotion_discount=_sum_amounts(buckets[DiscountCategory.PROMOTION]),
        coupon_discount=_sum_amounts(buckets[DiscountCategory.COUPON]),
        other_discount=_sum_amounts(buckets[DiscountCategory.OTHER]),
    )


def extract_promotion_names(discounts: Iterable[DiscountLine]) -> tuple[str, ...]:
    names: list[str] = []
    for discount in discounts:
        if discount.category is DiscountCategory.COUPON:
            continue
        if discount.discount_kind not in LABELLED_DISCOUNT_KINDS:
            continue
        _append_unique(names, discount.name)
    return tuple(names)


def compute_totals(order: NormalizedOrder) -> PricingTotals:
    sale_savings = compute_sale_savings(order.items)
    promotion_savings, item_names = compute_promotion_savings(order.items)

    split = split_applied_discounts(order.discounts)

    promotion_names: list[str] = list(item_names)
    for name in extract_promotion_names(order.discounts):
        _append_unique(promotion_names, name)

    display_subtotal = safe_number(order.subtotal) + promotion_savings + sale_savings

    persisted_discount = max(ZERO, safe_number(order.discount_amount))
    itemized = split.promotion_discount + split.coupon_discount + split.other_discount
    remaining_other = max(ZERO, persisted_discount - itemized) + split.other_discount

    # The persisted discount already equals the sum of the itemized lines.
    total_discounts = sale_savings + promotion_savings + persisted_discount

    total_after = safe_number(order.total_amount)

    return PricingTotals(
        display_subtotal=display_subtotal,
        sale_savings=sale_savings,
        promotion_savings=promotion_savings,
        promotion_names=tuple(promotion_names),
        promotion_discount=split.promotion_discount,
        promotion_discounts=split.promotion_discounts,
        coupon_discount=split.coupon_discount,
        coupon_discounts=split.coupon_discounts,
        other_discount=remaining_other,
        total_discounts=total_discounts,
        shipping=safe_number(order.shipping_amount),
        tax=safe_number(order.tax_amount),
        total_before_discounts=total_after + total_discounts,
        total_after_discounts=total_after,
    )


def compute_order_totals(raw: Any) -> PricingTotals:
    return compute_totals(normalize(raw))


def compute_cart_totals(cart: Any, total_after_discounts_override: Any = None) -> CartTotals:
    order = normalize(cart)
    if total_after_discounts_override is not None:
        order = replace(order, total_amount=safe_number(total_after_discounts_override))
    totals = compute_totals(order)
    return CartTotals(
        totals=totals,
        sum_all_discounts=totals.total_discounts,
        cart_discount_amount=order.discount_amount,
    )
