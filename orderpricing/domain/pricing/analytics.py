from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

import pandas as pd

from orderpricing.domain.pricing.models import DiscountLine
from orderpricing.domain.pricing.normalizer import SYNTHETIC_DISCOUNT_ID, normalize


class OrderBatchError(ValueError):
    pass


@dataclass
class DiscountAnalytics:
    summary: dict[str, int]
    type_breakdown: list[dict] = field(default_factory=list)
    top_discounts: list[dict] = field(default_factory=list)
    usage_over_time: list[dict] = field(default_factory=list)


def to_cents(value: Decimal) -> int:
    return int((value * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _created_at(raw: Mapping[str, Any]) -> datetime | None:
    value = raw.get("createdAt")
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return _as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _type_key(discount: DiscountLine) -> tuple[str, str]:
    md = discount.metadata
    kind = md.kind if md is not None and md.kind else ("offer" if discount.is_automatic else "coupon")
    offer_kind = md.offer_kind if md is not None and md.offer_kind else "standard"
    return kind, offer_kind


def breakdown_label(kind: str, offer_kind: str) -> str:
    if kind == "coupon":
        return "Coupons"
    if kind == "offer" and offer_kind == "standard":
        return "Scheduled Offers"
    if kind == "offer" and offer_kind == "bundle":
        return "Bundle Offers"
    if kind == "deal" and offer_kind == "bxgy_generic":
        return "Buy X Get Y"
    if kind == "deal" and offer_kind == "bxgy_bundle":
        return "BXGY Bundle"
    return "Other"


def discount_type_label(discount: DiscountLine) -> str:
    md = discount.metadata
    if md is not None and md.kind == "deal":
        if md.offer_kind == "bxgy_generic":
            if md.buy_qty and md.get_qty:
                return f"Buy {md.buy_qty} Get {md.get_qty}"
            return "Buy X Get Y"
        if md.offer_kind == "bxgy_bundle":
            return "Bundle Deal"
    if md is not None and md.kind == "offer":
        return "Bundle Offer" if md.offer_kind == "bundle" else "Scheduled Offer"
    return "Promotion" if discount.is_automatic else "Coupon"


def _in_period(created_at: datetime | None, period_start: datetime | None, period_end: datetime | None) -> bool:
    if period_start is None and period_end is None:
        return True
    if created_at is None:
        return False
    if period_start is not None and created_at < _as_utc(period_start):
        return False
    if period_end is not None and created_at >= _as_utc(period_end):
        return False
    return True


def _rows(
    orders: list[Mapping[str, Any]],
    period_start: datetime | None,
    period_end: datetime | None,
) -> tuple[list[dict], list[dict]]:
    order_rows: list[dict] = []
    discount_rows: list[dict] = []
    for index, raw in enumerate(orders):
        if str(raw.get("status", "")).lower() == "cancelled":
            continue
        created_at = _created_at(raw)
        if not _in_period(created_at, period_start, period_end):
            continue
        order = normalize(raw)
        order_id = str(raw.get("id") or f"order-{index}")
        day = created_at.date().isoformat() if created_at else None
        order_rows.append(
            {
                "order_id": order_id,
                "discount_cents": to_cents(max(order.discount_amount, Decimal("0"))),
                "total_cents": to_cents(order.total_amount),
                "day": day,
            }
        )
        for discount in order.discounts:
            if discount.id == SYNTHETIC_DISCOUNT_ID:
                continue
            kind, offer_kind = _type_key(discount)
            discount_rows.append(
                {
                    "order_id": order_id,
                    "discount_key": discount.id or discount.code or discount.name or "unknown",
                    "name": discount.name,
                    "code": discount.code,
                    "is_automatic": discount.is_automatic,
                    "kind": kind,
                    "offer_kind": offer_kind,
                    "type_label": discount_type_label(discount),
                    "amount_cents": to_cents(discount.amount),
                    "day": day,
                }
            )
    return order_rows, discount_rows


def _ratio_bps(numerator: int, denominator: int) -> int:
    return numerator * 10000 // denominator if denominator else 0


def compute_discount_analytics(
    orders: Iterable[Mapping[str, Any]],
    period_start: datetime | None = None,
    period_end: datetime | None = None,
    limit: int = 10,
    max_orders: int = 0,
) -> DiscountAnalytics:
    order_list = [raw for raw in orders if isinstance(raw, Mapping)]
    if max_orders > 0 and len(order_list) > max_orders:
        raise OrderBatchError(f"batch of {len(order_list)} orders exceeds limit {max_orders}")

    order_rows, discount_rows = _rows(order_list, period_start, period_end)
    orders_df = pd.DataFrame(order_rows)
    discounts_df = pd.DataFrame(discount_rows)

    total_orders = len(orders_df)
    total_discount = int(orders_df["discount_cents"].sum()) if not orders_df.empty else 0
    total_revenue = int(orders_df["total_cents"].sum()) if not orders_df.empty else 0
    discounted = orders_df[orders_df["discount_cents"] > 0] if not orders_df.empty else orders_df
    orders_with_discount = len(discounted)
    avg_discount = int(round(discounted["discount_cents"].mean())) if orders_with_discount else 0

    summary = {
        "total_discount_cents": total_discount,
        "orders_with_discount": orders_with_discount,
        "total_orders": total_orders,
        "total_revenue_cents": total_revenue,
        "avg_discount_per_order_cents": avg_discount,
        "discount_rate_bps": _ratio_bps(orders_with_discount, total_orders),
        "discount_share_of_revenue_bps": _ratio_bps(total_discount, total_revenue + total_discount),
    }

    if discounts_df.empty:
        return DiscountAnalytics(summary=summary)

    type_breakdown: list[dict] = []
    by_type = discounts_df.groupby(["kind", "offer_kind"], dropna=False, as_index=False).agg(
        total_cents=("amount_cents", "sum"),
        usage_count=("amount_cents", "count"),
    )
    for _, row in by_type.iterrows():
        usage = int(row["usage_count"])
        total = int(row["total_cents"])
        type_breakdown.append(
            {
                "type": row["kind"],
                "offer_kind": row["offer_kind"],
                "label": breakdown_label(row["kind"], row["offer_kind"]),
                "total_cents": total,
                "usage_count": usage,
                "avg_cents": int(round(total / usage)) if usage else 0,
            }
        )
    type_breakdown.sort(key=lambda r: (-r["total_cents"], r["label"]))

    top_discounts: list[dict] = []
    by_discount = (
        discounts_df.groupby("discount_key", sort=False)
        .agg(
            total_cents=("amount_cents", "sum"),
            usage_count=("order_id", "nunique"),
            name=("name", "first"),
            code=("code", "first"),
            is_automatic=("is_automatic", "first"),
            type_label=("type_label", "first"),
        )
        .reset_index()
        .sort_values(["total_cents", "discount_key"], ascending=[False, True], kind="mergesort")
        .head(limit)
    )
    for _, row in by_discount.iterrows():
        usage = int(row["usage_count"])
        total = int(row["total_cents"])
        top_discounts.append(
            {
                "id": row["discount_key"],
                "name": None if pd.isna(row["name"]) else row["name"],
                "code": None if pd.isna(row["code"]) else row["code"],
                "is_automatic": bool(row["is_automatic"]),
                "type_label": row["type_label"],
                "total_savings_cents": total,
                "usage_count": usage,
                "avg_discount_per_order_cents": int(round(total / usage)) if usage else 0,
            }
        )

    usage_over_time: list[dict] = []
    dated = discounts_df.dropna(subset=["day"])
    if not dated.empty:
        by_day = (
            dated.groupby("day", as_index=False)
            .agg(total_cents=("amount_cents", "sum"), usage_count=("order_id", "nunique"))
            .sort_values("day")
        )
        for _, row in by_day.iterrows():
            usage_over_time.append(
                {
                    "date": row["day"],
                    "total_cents": int(row["total_cents"]),
                    "usage_count": int(row["usage_count"]),
                }
            )

    return DiscountAnalytics(
        summary=summary,
        type_breakdown=type_breakdown,
        top_discounts=top_discounts,
        usage_over_time=usage_over_time,
    )
