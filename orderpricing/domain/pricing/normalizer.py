from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping

from orderpricing.domain.pricing.models import (
    ZERO,
    DiscountCategory,
    DiscountLine,
    LineItem,
    NormalizedOrder,
    first_present,
    safe_number,
)

logger = logging.getLogger(__name__)

DISCOUNT_ARRAY_KEYS = ("appliedDiscounts", "orderDiscounts", "discounts")

ORDER_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "subtotal": ("subtotal", "subtotalAmount"),
    "discount_amount": ("discountAmount", "discount"),
    "shipping_amount": ("shippingAmount", "shipping"),
    "tax_amount": ("taxAmount", "tax"),
    "total_amount": ("totalAmount", "total"),
}

SYNTHETIC_DISCOUNT_ID = "order-discount"


def _records(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def _raw_discounts(raw: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    for key in DISCOUNT_ARRAY_KEYS:
        value = raw.get(key)
        if isinstance(value, list):
            return _records(value)
    return []


def _synthetic_discount(amount: Decimal, applied_code: Any) -> DiscountLine:
    code = str(applied_code).strip() if applied_code is not None else ""
    if code:
        return DiscountLine(
            id=SYNTHETIC_DISCOUNT_ID,
            amount=amount,
            category=DiscountCategory.COUPON,
            code=code,
            is_automatic=False,
            declared_type="coupon",
        )
    return DiscountLine(
        id=SYNTHETIC_DISCOUNT_ID,
        amount=amount,
        category=DiscountCategory.OTHER,
        is_automatic=True,
        declared_type="other",
    )


def normalize(raw: Any) -> NormalizedOrder:
    if not isinstance(raw, Mapping):
        return NormalizedOrder()

    fields = {name: safe_number(first_present(raw, aliases)) for name, aliases in ORDER_FIELD_ALIASES.items()}
    items = tuple(LineItem.from_record(record) for record in _records(raw.get("items")))
    discounts = [DiscountLine.from_record(record) for record in _raw_discounts(raw)]

    if not discounts and fields["discount_amount"] > ZERO:
        synthetic = _synthetic_discount(fields["discount_amount"], raw.get("appliedDiscountCode"))
        logger.debug(
            "synthesized discount line: category=%s amount=%s",
            synthetic.category.value,
            synthetic.amount,
        )
        discounts.append(synthetic)

    return NormalizedOrder(items=items, discounts=tuple(discounts), **fields)
