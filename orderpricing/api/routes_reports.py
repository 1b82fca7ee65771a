from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from orderpricing.api.utils import iso_z, parse_period
from orderpricing.core.config import get_settings
from orderpricing.domain.pricing.analytics import compute_discount_analytics

router = APIRouter(tags=["reports"])


class DiscountReportRequest(BaseModel):
    orders: list[dict[str, Any]] = Field(default_factory=list)


@router.post("/reports/discounts")
def post_discount_report(
    request: DiscountReportRequest,
    period: str | None = Query(default=None, description="ISO period: start/end"),
    limit: int | None = Query(default=None, ge=1, le=100),
):
    settings = get_settings()
    start = end = None
    if period:
        try:
            start, end = parse_period(period)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    report = compute_discount_analytics(
        request.orders,
        period_start=start,
        period_end=end,
        limit=limit or settings.analytics_top_limit,
        max_orders=settings.max_batch_orders,
    )
    return {
        "period": {"start": iso_z(start), "end": iso_z(end)} if start and end else None,
        "report": report.__dict__,
    }
