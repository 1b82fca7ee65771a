from __future__ import annotations

from decimal import Decimal

from orderpricing.domain.pricing.labels import (
    compare_at_percent_off,
    describe_line_item,
    get_discount_label,
    get_short_promotion_label,
)
from orderpricing.domain.pricing.models import DiscountLine, LineItem


def _discount(**raw) -> DiscountLine:
    return DiscountLine.from_record(raw)


def test_discount_labels():
    generic = _discount(name="Summer", isAutomatic=True, metadata={"kind": "deal", "offerKind": "bxgy_generic", "bxgy": {"buyQty": 2, "getQty": 1}})
    assert get_discount_label(generic) == "Buy 2 Get 1 Free (Summer)"
    assert get_short_promotion_label(generic) == "Buy 2 Get 1"

    unconfigured = _discount(metadata={"kind": "deal", "offerKind": "bxgy_generic"})
    assert get_discount_label(unconfigured) == "Buy X Get Y"
    assert get_short_promotion_label(unconfigured) == "Buy X Get Y"

    bundle = _discount(name="Home Starter Kit", metadata={"kind": "deal", "offerKind": "bxgy_bundle"})
    assert get_discount_label(bundle) == "Bundle deal (Home Starter Kit)"
    assert get_short_promotion_label(bundle) == "Bundle deal"

    assert get_discount_label(_discount(code="SAVE20")) == "Coupon (SAVE20)"
    assert get_discount_label(_discount(name="Flash Sale", isAutomatic=True)) == "Promotion (Flash Sale)"
    assert get_discount_label(_discount(isAutomatic=True)) == "Promotion"
    assert get_discount_label(_discount(name="Goodwill credit")) == "Goodwill credit"
    assert get_discount_label(_discount()) == "Discount"
    assert get_short_promotion_label(_discount(name="Flash Sale")) == "Flash Sale"
    assert get_short_promotion_label(_discount()) == "Promotion"


def test_describe_line_item_sale_and_promotion():
    item = LineItem(
        id="a",
        quantity=2,
        unit_price=Decimal("12"),
        total_price=Decimal("24"),
        reference_price=Decimal("15"),
        compare_at_price=Decimal("20"),
        promotion_name="Spring",
    )
    pricing = describe_line_item(item)
    assert pricing.has_sale_price
    assert pricing.has_promotion_price
    assert pricing.has_any_discount
    assert pricing.original_total == Decimal("40")
    assert pricing.line_total == Decimal("24")
    assert pricing.compare_at_percent_off == 25


def test_describe_line_item_gift_and_plain():
    gift = LineItem(id="g", quantity=1, unit_price=Decimal("0"), total_price=Decimal("0"), reference_price=Decimal("6"))
    pricing = describe_line_item(gift)
    assert pricing.is_gift
    assert not pricing.has_sale_price
    assert pricing.original_total == Decimal("6")

    plain = LineItem(id="p", quantity=1, unit_price=Decimal("6"), total_price=Decimal("6"))
    plain_pricing = describe_line_item(plain)
    assert not plain_pricing.has_any_discount
    assert plain_pricing.original_total is None
    assert plain_pricing.compare_at_percent_off == 0


def test_compare_at_percent_off_rounds_half_up():
    item = LineItem(id="x", quantity=1, unit_price=Decimal("7"), total_price=Decimal("7"), compare_at_price=Decimal("8"))
    assert compare_at_percent_off(item) == 13
