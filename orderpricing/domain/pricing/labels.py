from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from orderpricing.domain.pricing.models import (
    ZERO,
    DiscountCategory,
    DiscountLine,
    LineItem,
    get_compare_at_price,
    get_reference_price,
    is_gift_item,
)

DISCOUNT_LABELS: dict[str, str] = {
    "sale": "Sale savings",
    "promotion": "Promotion",
    "deal": "Deal",
    "bxgy_generic": "Buy X Get Y",
    "bxgy_bundle": "Bundle deal",
    "coupon": "Coupon",
    "free_gift": "Free gift",
    "other": "Discount",
}


def _offer_kind(discount: DiscountLine) -> str | None:
    return discount.metadata.offer_kind if discount.metadata is not None else None


def _bxgy_quantities(discount: DiscountLine) -> tuple[int, int]:
    if discount.metadata is None:
        return 0, 0
    return discount.metadata.buy_qty, discount.metadata.get_qty


def get_discount_label(discount: DiscountLine) -> str:
    offer_kind = _offer_kind(discount)
    kind = discount.metadata.kind if discount.metadata is not None else None
    name = discount.name

    if offer_kind == "bxgy_generic" or (kind == "deal" and offer_kind is None):
        buy_qty, get_qty = _bxgy_quantities(discount)
        if buy_qty > 0 and get_qty > 0:
            deal_label = f"Buy {buy_qty} Get {get_qty} Free"
            return f"{deal_label} ({name})" if name else deal_label
        return f"Buy X Get Y ({name})" if name else DISCOUNT_LABELS["bxgy_generic"]

    if offer_kind == "bxgy_bundle":
        return f"Bundle deal ({name})" if name else DISCOUNT_LABELS["bxgy_bundle"]

    if discount.category is DiscountCategory.COUPON:
        if discount.code:
            return f"Coupon ({discount.code})"
        return f"Coupon ({name})" if name else DISCOUNT_LABELS["coupon"]

    if discount.category is DiscountCategory.PROMOTION:
        if name:
            return f"Promotion ({name})"
        if discount.code:
            return f"Promotion ({discount.code})"
        return DISCOUNT_LABELS["promotion"]

    if name:
        return name
    if discount.code:
        return f"Discount ({discount.code})"
    return DISCOUNT_LABELS["other"]


def get_short_promotion_label(discount: DiscountLine) -> str:
    offer_kind = _offer_kind(discount)
    if offer_kind == "bxgy_generic":
        buy_qty, get_qty = _bxgy_quantities(discount)
        if buy_qty > 0 and get_qty > 0:
            return f"Buy {buy_qty} Get {get_qty}"
        return "Buy X Get Y"
    if offer_kind == "bxgy_bundle":
        return "Bundle deal"
    return discount.name or "Promotion"


@dataclass(frozen=True)
class LineItemPricing:
    is_gift: bool
    has_sale_price: bool
    has_promotion_price: bool
    original_total: Decimal | None
    line_total: Decimal
    promotion_name: str | None
    compare_at_percent_off: int

    @property
    def has_any_discount(self) -> bool:
        return self.is_gift or self.has_sale_price or self.has_promotion_price


def compare_at_percent_off(item: LineItem) -> int:
    base = get_reference_price(item)
    compare_at = get_compare_at_price(item)
    if base <= 0 or compare_at <= base:
        return 0
    pct = (compare_at - base) / compare_at * 100
    return max(0, int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def describe_line_item(item: LineItem) -> LineItemPricing:
    gift = is_gift_item(item)
    qty = item.quantity or 1
    ref = get_reference_price(item)
    compare_at = get_compare_at_price(item)
    unit = item.unit_price

    has_sale = not gift and ref > 0 and compare_at > ref
    has_promotion = not gift and ref > 0 and ZERO < unit < ref

    original_total: Decimal | None = None
    if has_sale:
        original_total = compare_at * qty
    elif has_promotion or (gift and ref > 0):
        original_total = ref * qty

    return LineItemPricing(
        is_gift=gift,
        has_sale_price=has_sale,
        has_promotion_price=has_promotion,
        original_total=original_total,
        line_total=item.total_price,
        promotion_name=item.promotion_name,
        compare_at_percent_off=0 if gift else compare_at_percent_off(item),
    )
