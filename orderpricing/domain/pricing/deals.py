from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from orderpricing.domain.pricing.models import (
    ZERO,
    DealGroup,
    DiscountKind,
    DiscountLine,
    FreeUnitAllocation,
    LineItem,
    NormalizedOrder,
    get_reference_price,
)
from orderpricing.domain.pricing.normalizer import normalize

logger = logging.getLogger(__name__)

DEFAULT_DEAL_LABEL = "BXGY"


def _label(discount: DiscountLine) -> str:
    return discount.name or discount.code or DEFAULT_DEAL_LABEL


def _claim(
    items: tuple[LineItem, ...],
    claimed: set[int],
    product_ids: set[str],
) -> tuple[LineItem, ...]:
    members: list[LineItem] = []
    for index, item in enumerate(items):
        if index in claimed or not item.product_id:
            continue
        if item.product_id in product_ids:
            claimed.add(index)
            members.append(item)
    return tuple(members)


def group_items(order: NormalizedOrder | Any) -> list[DealGroup]:
    if not isinstance(order, NormalizedOrder):
        order = normalize(order)

    items = order.items
    claimed: set[int] = set()
    groups: list[DealGroup] = []

    for discount in order.discounts:
        if discount.discount_kind is not DiscountKind.BXGY_BUNDLE or discount.metadata is None:
            continue
        md = discount.metadata
        product_ids = set(md.bundle_buy_product_ids) | set(md.bundle_get_product_ids)
        members = _claim(items, claimed, product_ids) if product_ids else ()
        if not members:
            logger.debug("bundle deal %s matched no line items", discount.id or "<unnamed>")
            continue
        groups.append(
            DealGroup(
                id=discount.id or f"bxgy-bundle-{len(groups)}",
                kind="bxgy_bundle",
                items=members,
                label=_label(discount),
                discount=discount,
                bundle_get_product_ids=md.bundle_get_product_ids,
            )
        )

    for discount in order.discounts:
        if discount.discount_kind is not DiscountKind.BXGY_GENERIC or discount.metadata is None:
            continue
        product_ids = set(discount.target_product_ids)
        members = _claim(items, claimed, product_ids) if product_ids else ()
        if not members:
            logger.debug("generic deal %s matched no line items", discount.id or "<unnamed>")
            continue
        groups.append(
            DealGroup(
                id=discount.id or f"bxgy-generic-{len(groups)}",
                kind="bxgy_generic",
                items=members,
                label=_label(discount),
                discount=discount,
                generic_buy_qty=discount.metadata.buy_qty,
                generic_get_qty=discount.metadata.get_qty,
            )
        )

    for index, item in enumerate(items):
        if index in claimed:
            continue
        groups.append(DealGroup(id=item.id or f"item-{index}", kind="single", items=(item,)))

    return groups


def allocate_free_units(group: DealGroup) -> FreeUnitAllocation:
    """Decide which units of a generic BXGY group display as free.

    Free units go to the cheapest items first (base unit price, preferring the
    reference price); equal prices keep the original item order. The returned
    ``free_units`` tuple is aligned with ``group.items``.
    """
    if group.kind != "bxgy_generic":
        return FreeUnitAllocation(free_units=tuple(0 for _ in group.items))

    eligible_qty = sum(max(0, item.quantity) for item in group.items)
    cycle = group.generic_buy_qty + group.generic_get_qty
    if cycle <= 0:
        return FreeUnitAllocation(eligible_qty=eligible_qty, free_units=tuple(0 for _ in group.items))

    applications = eligible_qty // cycle
    total_free = applications * max(0, group.generic_get_qty)

    free_units = [0] * len(group.items)
    free_value: Decimal = ZERO
    remaining = total_free
    ordered = sorted(range(len(group.items)), key=lambda i: get_reference_price(group.items[i]))
    for index in ordered:
        if remaining <= 0:
            break
        item = group.items[index]
        take = min(remaining, max(0, item.quantity))
        free_units[index] = take
        free_value += get_reference_price(item) * take
        remaining -= take

    return FreeUnitAllocation(
        eligible_qty=eligible_qty,
        applications=applications,
        total_free_units=total_free,
        free_units=tuple(free_units),
        free_value=free_value,
    )
