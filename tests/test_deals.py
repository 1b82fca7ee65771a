from __future__ import annotations

from decimal import Decimal

from orderpricing.domain.pricing.deals import allocate_free_units, group_items
from orderpricing.domain.pricing.models import DealGroup, LineItem
from orderpricing.domain.pricing.normalizer import normalize


def _generic_group(items: list[LineItem], buy_qty: int, get_qty: int) -> DealGroup:
    return DealGroup(
        id="g",
        kind="bxgy_generic",
        items=tuple(items),
        generic_buy_qty=buy_qty,
        generic_get_qty=get_qty,
    )


def _line(item_id: str, qty: int, unit: str, ref: str | None = None) -> LineItem:
    return LineItem(
        id=item_id,
        quantity=qty,
        unit_price=Decimal(unit),
        total_price=Decimal(unit) * qty,
        reference_price=Decimal(ref) if ref is not None else None,
    )


def test_generic_allocation_gives_free_unit_to_cheapest_item():
    group = _generic_group([_line("A", 3, "10"), _line("B", 2, "5")], buy_qty=2, get_qty=1)
    allocation = allocate_free_units(group)
    assert allocation.eligible_qty == 5
    assert allocation.applications == 1
    assert allocation.total_free_units == 1
    assert allocation.free_units == (0, 1)
    assert allocation.free_value == Decimal("5")


def test_generic_allocation_spills_into_next_cheapest():
    group = _generic_group([_line("A", 4, "10"), _line("B", 1, "5"), _line("C", 3, "7")], buy_qty=1, get_qty=1)
    allocation = allocate_free_units(group)
    assert allocation.applications == 4
    assert allocation.total_free_units == 4
    assert allocation.free_units == (0, 1, 3)
    assert allocation.free_value == Decimal("26")


def test_generic_allocation_prefers_reference_price_for_ordering():
    promoted = _line("A", 1, "2", ref="12")
    plain = _line("B", 1, "8")
    allocation = allocate_free_units(_generic_group([promoted, plain], buy_qty=1, get_qty=1))
    assert allocation.free_units == (0, 1)


def test_generic_allocation_ties_keep_original_order():
    group = _generic_group([_line("first", 1, "5"), _line("second", 1, "5"), _line("third", 1, "5")], buy_qty=2, get_qty=1)
    assert allocate_free_units(group).free_units == (1, 0, 0)


def test_generic_allocation_with_too_few_units_is_empty():
    group = _generic_group([_line("A", 2, "10")], buy_qty=2, get_qty=1)
    allocation = allocate_free_units(group)
    assert allocation.applications == 0
    assert allocation.free_units == (0,)
    assert allocation.free_value == 0


def test_allocation_degrades_for_bad_configuration_and_other_kinds():
    items = [_line("A", 5, "10")]
    assert allocate_free_units(_generic_group(items, buy_qty=0, get_qty=0)).total_free_units == 0
    single = DealGroup(id="A", kind="single", items=tuple(items))
    assert allocate_free_units(single).free_units == (0,)


def test_group_items_with_generic_deal(bxgy_order):
    groups = group_items(bxgy_order)
    assert [(g.kind, g.id) for g in groups] == [("bxgy_generic", "d-generic"), ("single", "i3")]

    generic = groups[0]
    assert [item.id for item in generic.items] == ["i1", "i2"]
    assert generic.label == "Back to School"
    assert (generic.generic_buy_qty, generic.generic_get_qty) == (2, 1)
    assert allocate_free_units(generic).free_units == (0, 1)


def test_bundle_groups_claim_before_generic_groups():
    order = {
        "items": [
            {"id": "1", "productId": "p1", "quantity": 1, "unitPrice": 10, "totalPrice": 10},
            {"id": "2", "productId": "p2", "quantity": 1, "unitPrice": 0, "totalPrice": 0},
            {"id": "3", "productId": "p3", "quantity": 2, "unitPrice": 4, "totalPrice": 8},
            {"id": "4", "productId": "p9", "quantity": 1, "unitPrice": 1, "totalPrice": 1},
        ],
        "orderDiscounts": [
            {
                "id": "gen",
                "code": "GEN",
                "targetProductIds": ["p1", "p3"],
                "discountMetadata": {"kind": "deal", "offerKind": "bxgy_generic", "bxgy": {"buyQty": 1, "getQty": 1}},
            },
            {
                "id": "bun",
                "discountMetadata": {
                    "kind": "deal",
                    "offerKind": "bxgy_bundle",
                    "bxgyBundle": {"buy": [{"productId": "p1"}], "get": [{"productId": "p2"}]},
                },
            },
        ],
    }
    groups = group_items(order)
    assert [(g.kind, g.id, [i.id for i in g.items]) for g in groups] == [
        ("bxgy_bundle", "bun", ["1", "2"]),
        ("bxgy_generic", "gen", ["3"]),
        ("single", "4", ["4"]),
    ]
    assert groups[0].bundle_get_product_ids == ("p2",)
    assert groups[0].label == "BXGY"
    assert groups[1].label == "GEN"


def test_every_item_lands_in_exactly_one_group():
    order = {
        "items": [
            {"id": "a", "productId": "p1", "quantity": 1},
            {"id": "b", "productId": "p1", "quantity": 1},
            {"quantity": 1},
        ],
        "orderDiscounts": [
            {"id": "b1", "discountMetadata": {"kind": "deal", "offerKind": "bxgy_bundle", "bxgyBundle": {"buy": [{"productId": "p1"}], "get": []}}},
            {"id": "b2", "discountMetadata": {"kind": "deal", "offerKind": "bxgy_bundle", "bxgyBundle": {"buy": [{"productId": "p1"}], "get": []}}},
        ],
    }
    groups = group_items(order)
    assert [g.id for g in groups] == ["b1", "item-2"]
    assert sum(len(g.items) for g in groups) == 3


def test_unrecognized_and_empty_deals_are_skipped():
    order = {
        "items": [{"id": "a", "productId": "p1", "quantity": 1, "unitPrice": 3, "totalPrice": 3}],
        "orderDiscounts": [
            {"id": "weird", "discountMetadata": {"kind": "deal", "offerKind": "mystery"}, "targetProductIds": ["p1"]},
            {"id": "no-targets", "discountMetadata": {"kind": "deal", "offerKind": "bxgy_generic"}},
            {"id": "no-match", "discountMetadata": {"kind": "deal", "offerKind": "bxgy_generic"}, "targetProductIds": ["zzz"]},
        ],
    }
    groups = group_items(order)
    assert [(g.kind, g.id) for g in groups] == [("single", "a")]


def test_group_items_accepts_normalized_order(bxgy_order):
    assert group_items(normalize(bxgy_order)) == group_items(bxgy_order)


def test_group_items_on_garbage_is_empty():
    assert group_items(None) == []
    assert group_items({"items": "nope"}) == []
