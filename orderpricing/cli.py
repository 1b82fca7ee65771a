from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from orderpricing.api.utils import parse_period
from orderpricing.core.canonical import to_canonical_obj
from orderpricing.core.config import get_settings
from orderpricing.core.logging import configure_logging
from orderpricing.domain.pricing.analytics import OrderBatchError, compute_discount_analytics
from orderpricing.domain.pricing.deals import allocate_free_units, group_items
from orderpricing.domain.pricing.totals import compute_cart_totals, compute_order_totals
from orderpricing.reconciliation.rules import run_pricing_reconciliation


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Order pricing engine CLI")
    parser.add_argument("--log-level", default=None)
    top = parser.add_subparsers(dest="command", required=True)

    totals = top.add_parser("totals", help="Compute the pricing breakdown of an order or cart")
    totals.add_argument("path", help="JSON file holding one order/cart record")
    totals.add_argument("--cart", action="store_true", help="Report cart aliases (sum_all_discounts)")
    totals.add_argument("--total-override", default=None, help="Replace the persisted total (cart mode)")

    groups = top.add_parser("groups", help="Group line items into deal groups")
    groups.add_argument("path", help="JSON file holding one order/cart record")

    reconcile = top.add_parser("reconcile", help="Run pricing reconciliation checks")
    reconcile.add_argument("path", help="JSON file holding one order/cart record")

    analytics = top.add_parser("analytics", help="Discount analytics over a list of orders")
    analytics.add_argument("path", help="JSON file holding a list of order records")
    analytics.add_argument("--period", default=None, help="ISO period: start/end")
    analytics.add_argument("--limit", type=int, default=None)

    serve = top.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _print(payload: Any) -> None:
    print(json.dumps(to_canonical_obj(payload), ensure_ascii=False, indent=2, sort_keys=True))


def _run_totals(args: argparse.Namespace) -> int:
    record = _load_json(args.path)
    if args.cart:
        _print(compute_cart_totals(record, total_after_discounts_override=args.total_override))
    else:
        _print(compute_order_totals(record))
    return 0


def _run_groups(args: argparse.Namespace) -> int:
    groups = group_items(_load_json(args.path))
    _print([{"group": group, "allocation": allocate_free_units(group)} for group in groups])
    return 0


def _run_reconcile(args: argparse.Namespace) -> int:
    results = run_pricing_reconciliation(_load_json(args.path))
    _print([result.__dict__ for result in results])
    return 0 if all(result.passed for result in results) else 1


def _run_analytics(args: argparse.Namespace) -> int:
    settings = get_settings()
    orders = _load_json(args.path)
    if not isinstance(orders, list):
        print("analytics input must be a JSON list of orders", file=sys.stderr)
        return 2
    start = end = None
    if args.period:
        start, end = parse_period(args.period)
    report = compute_discount_analytics(
        orders,
        period_start=start,
        period_end=end,
        limit=args.limit or settings.analytics_top_limit,
        max_orders=settings.max_batch_orders,
    )
    _print(report.__dict__)
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "orderpricing.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
    )
    return 0


COMMANDS = {
    "totals": _run_totals,
    "groups": _run_groups,
    "reconcile": _run_reconcile,
    "analytics": _run_analytics,
    "serve": _run_serve,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.error("unsupported command")
        return 2
    try:
        return handler(args)
    except OrderBatchError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
