"""Canonical line-item and discount records shared by the pricing components.

Money is carried as ``Decimal`` everywhere; every entity is a frozen
dataclass so results can be handed to concurrent callers without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Literal, Mapping

ZERO = Decimal("0")

# Amounts at or beyond 1e309 are treated as unparseable.
MAX_ADJUSTED_EXPONENT = 308

GroupKind = Literal["single", "bxgy_bundle", "bxgy_generic"]


def safe_number(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return ZERO
    else:
        return ZERO
    if not number.is_finite() or number.adjusted() > MAX_ADJUSTED_EXPONENT:
        return ZERO
    return number


def safe_int(value: Any) -> int:
    return int(safe_number(value))


def first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class DiscountKind(str, Enum):
    STANDARD = "standard"
    BXGY_BUNDLE = "bxgy_bundle"
    BXGY_GENERIC = "bxgy_generic"
    UNKNOWN = "unknown"


class DiscountCategory(str, Enum):
    PROMOTION = "promotion"
    COUPON = "coupon"
    OTHER = "other"


def resolve_discount_kind(kind: str | None, offer_kind: str | None) -> DiscountKind:
    if kind == "offer" and offer_kind in (None, "standard"):
        return DiscountKind.STANDARD
    if kind == "deal" and offer_kind == "bxgy_bundle":
        return DiscountKind.BXGY_BUNDLE
    if kind == "deal" and offer_kind == "bxgy_generic":
        return DiscountKind.BXGY_GENERIC
    return DiscountKind.UNKNOWN


def classify_discount(code: str | None, is_automatic: bool | None, declared_type: str | None) -> DiscountCategory:
    if code and not is_automatic:
        return DiscountCategory.COUPON
    if is_automatic or declared_type in ("promotion", "deal"):
        return DiscountCategory.PROMOTION
    return DiscountCategory.OTHER


def _product_ids(entries: Any) -> tuple[str, ...]:
    if not isinstance(entries, list):
        return ()
    ids: list[str] = []
    for entry in entries:
        raw = entry.get("productId") if isinstance(entry, Mapping) else entry
        pid = _text(raw)
        if pid:
            ids.append(pid)
    return tuple(ids)


@dataclass(frozen=True)
class DiscountMetadata:
    kind: str | None = None
    offer_kind: str | None = None
    buy_qty: int = 0
    get_qty: int = 0
    bundle_buy_product_ids: tuple[str, ...] = ()
    bundle_get_product_ids: tuple[str, ...] = ()

    @property
    def discount_kind(self) -> DiscountKind:
        return resolve_discount_kind(self.kind, self.offer_kind)

    @classmethod
    def from_record(cls, raw: Any) -> "DiscountMetadata | None":
        if not isinstance(raw, Mapping):
            return None
        bxgy = first_present(raw, ("bxgy", "bxgyGeneric"))
        if not isinstance(bxgy, Mapping):
            bxgy = {}
        bundle = first_present(raw, ("bxgyBundle", "bundleBxgy"))
        if not isinstance(bundle, Mapping):
            bundle = {}
        return cls(
            kind=_text(raw.get("kind")),
            offer_kind=_text(raw.get("offerKind")),
            buy_qty=safe_int(bxgy.get("buyQty")),
            get_qty=safe_int(bxgy.get("getQty")),
            bundle_buy_product_ids=_product_ids(bundle.get("buy")),
            bundle_get_product_ids=_product_ids(bundle.get("get")),
        )


@dataclass(frozen=True)
class LineItem:
    id: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    product_id: str | None = None
    product_name: str = ""
    variant_name: str | None = None
    sku: str | None = None
    reference_price: Decimal | None = None
    compare_at_price: Decimal | None = None
    promotion_name: str | None = None
    is_gift: bool = False

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> "LineItem":
        return cls(
            id=_text(raw.get("id")) or "",
            product_id=_text(raw.get("productId")),
            product_name=_text(first_present(raw, ("productName", "name"))) or "",
            variant_name=_text(first_present(raw, ("variantName", "variant"))),
            sku=_text(raw.get("sku")),
            quantity=safe_int(raw.get("quantity")),
            unit_price=safe_number(first_present(raw, ("unitPrice", "price"))),
            total_price=safe_number(first_present(raw, ("totalPrice", "total"))),
            reference_price=safe_number(first_present(raw, ("referencePrice", "variantPrice", "productPrice"))),
            compare_at_price=safe_number(
                first_present(raw, ("compareAtPrice", "variantCompareAtPrice", "productCompareAtPrice"))
            ),
            promotion_name=_text(raw.get("promotionName")),
            is_gift=raw.get("isGift") is True,
        )


def is_gift_item(item: LineItem) -> bool:
    if item.is_gift:
        return True
    return item.unit_price == 0 and item.total_price == 0


def get_reference_price(item: LineItem) -> Decimal:
    ref = item.reference_price if item.reference_price is not None else ZERO
    if ref > 0:
        return ref
    return item.unit_price


def get_compare_at_price(item: LineItem) -> Decimal:
    return item.compare_at_price if item.compare_at_price is not None else ZERO


@dataclass(frozen=True)
class DiscountLine:
    id: str
    amount: Decimal
    category: DiscountCategory
    code: str | None = None
    name: str | None = None
    is_automatic: bool = False
    declared_type: str | None = None
    metadata: DiscountMetadata | None = None
    target_product_ids: tuple[str, ...] = ()

    @property
    def discount_kind(self) -> DiscountKind:
        if self.metadata is None:
            return DiscountKind.UNKNOWN
        return self.metadata.discount_kind

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> "DiscountLine":
        metadata = DiscountMetadata.from_record(first_present(raw, ("discountMetadata", "metadata")))
        code = _text(raw.get("code"))
        is_automatic = raw.get("isAutomatic") is True
        declared_type = _text(raw.get("type"))
        if declared_type is None and metadata is not None:
            declared_type = {"deal": "deal", "offer": "promotion"}.get(metadata.kind or "")
        targets = raw.get("targetProductIds")
        return cls(
            id=_text(raw.get("id")) or "",
            amount=safe_number(raw.get("amount")),
            category=classify_discount(code, is_automatic, declared_type),
            code=code,
            name=_text(first_present(raw, ("discountName", "name"))),
            is_automatic=is_automatic,
            declared_type=declared_type,
            metadata=metadata,
            target_product_ids=_product_ids(targets),
        )


@dataclass(frozen=True)
class NormalizedOrder:
    items: tuple[LineItem, ...] = ()
    discounts: tuple[DiscountLine, ...] = ()
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    shipping_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO


@dataclass(frozen=True)
class PricingTotals:
    display_subtotal: Decimal
    sale_savings: Decimal
    promotion_savings: Decimal
    promotion_names: tuple[str, ...]
    promotion_discount: Decimal
    promotion_discounts: tuple[DiscountLine, ...]
    coupon_discount: Decimal
    coupon_discounts: tuple[DiscountLine, ...]
    other_discount: Decimal
    total_discounts: Decimal
    shipping: Decimal
    tax: Decimal
    total_before_discounts: Decimal
    total_after_discounts: Decimal


@dataclass(frozen=True)
class DealGroup:
    id: str
    kind: GroupKind
    items: tuple[LineItem, ...]
    label: str | None = None
    discount: DiscountLine | None = None
    bundle_get_product_ids: tuple[str, ...] = ()
    generic_buy_qty: int = 0
    generic_get_qty: int = 0


@dataclass(frozen=True)
class FreeUnitAllocation:
    eligible_qty: int = 0
    applications: int = 0
    total_free_units: int = 0
    free_units: tuple[int, ...] = ()
    free_value: Decimal = ZERO
