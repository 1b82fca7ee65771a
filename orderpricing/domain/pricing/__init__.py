from orderpricing.domain.pricing.deals import allocate_free_units, group_items
from orderpricing.domain.pricing.labels import (
    DISCOUNT_LABELS,
    LineItemPricing,
    describe_line_item,
    get_discount_label,
    get_short_promotion_label,
)
from orderpricing.domain.pricing.models import (
    DealGroup,
    DiscountCategory,
    DiscountKind,
    DiscountLine,
    DiscountMetadata,
    FreeUnitAllocation,
    LineItem,
    NormalizedOrder,
    PricingTotals,
    classify_discount,
    get_compare_at_price,
    get_reference_price,
    is_gift_item,
    safe_number,
)
from orderpricing.domain.pricing.normalizer import normalize
from orderpricing.domain.pricing.totals import (
    CartTotals,
    compute_cart_totals,
    compute_order_totals,
    compute_totals,
)

__all__ = [
    "CartTotals",
    "DISCOUNT_LABELS",
    "DealGroup",
    "DiscountCategory",
    "DiscountKind",
    "DiscountLine",
    "DiscountMetadata",
    "FreeUnitAllocation",
    "LineItem",
    "LineItemPricing",
    "NormalizedOrder",
    "PricingTotals",
    "allocate_free_units",
    "classify_discount",
    "compute_cart_totals",
    "compute_order_totals",
    "compute_totals",
    "describe_line_item",
    "get_compare_at_price",
    "get_discount_label",
    "get_reference_price",
    "get_short_promotion_label",
    "group_items",
    "is_gift_item",
    "normalize",
    "safe_number",
]
