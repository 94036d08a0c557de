#!/usr/bin/env python3
"""
Quote an order's payment breakdown from the active configuration set.

Usage:
    python3 scripts/quote_breakdown.py --subtotal 10000 --currency NGN
    python3 scripts/quote_breakdown.py --subtotal 250000 --seller-tier premium \
        --payment-method card --discount 5000 --json

Amounts are integer minor units (kobo for NGN). The transaction time
defaults to now; pass --at to replay a historical quote.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from marketplace_config import get_active_snapshot
from marketplace_engines import (
    MonetizationRequest,
    OrderMonetizationCalculator,
    from_minor_units,
)
from marketplace_kernel.exceptions import MarketplaceKernelError
from marketplace_kernel.logging_config import configure_logging

W = 64


def _money(units: int, currency: str) -> str:
    return f"{from_minor_units(units, currency).amount:>16} {currency}"


def render(breakdown) -> None:
    cur = breakdown.currency
    print("=" * W)
    print(f"  Payment breakdown ({breakdown.snapshot_id})")
    print("=" * W)
    print(f"  {'Subtotal':<30}{_money(breakdown.subtotal, cur)}")
    for tax in breakdown.taxes:
        print(f"  {tax.name:<30}{_money(tax.amount, cur)}")
    for fee in breakdown.fees:
        print(f"  {fee.name:<30}{_money(fee.amount, cur)}")
    if breakdown.discount:
        print(f"  {'Discount':<30}{_money(-breakdown.discount, cur)}")
    print("-" * W)
    print(f"  {'Total charged':<30}{_money(breakdown.total, cur)}")
    print()
    label = f"Platform cut ({breakdown.platform_rate}%)"
    print(f"  {label:<30}{_money(breakdown.platform_cut, cur)}")
    print(f"  {'Seller net':<30}{_money(breakdown.seller_net, cur)}")
    for line in breakdown.withholdings:
        print(f"  {line.name:<30}{_money(-line.amount, cur)}")
    print(f"  {'Seller payout':<30}{_money(breakdown.seller_payout, cur)}")
    print()
    print(f"  fingerprint: {breakdown.fingerprint}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Quote an order's payment breakdown.",
    )
    parser.add_argument("--subtotal", type=int, required=True,
                        help="Order subtotal in minor units")
    parser.add_argument("--currency", default="NGN")
    parser.add_argument("--country", default="NG")
    parser.add_argument("--marketplace", default="georgy")
    parser.add_argument("--seller-id")
    parser.add_argument("--seller-tier")
    parser.add_argument("--category")
    parser.add_argument("--user-type")
    parser.add_argument("--discount", type=int, default=0,
                        help="Discount in minor units")
    parser.add_argument("--payment-method")
    parser.add_argument("--escrow", action="store_true")
    parser.add_argument("--at", type=str,
                        help="Transaction time, ISO-8601 (default: now)")
    parser.add_argument("--config-dir", type=Path,
                        help="Configuration sets directory")
    parser.add_argument("--json", action="store_true",
                        help="Print the breakdown as JSON")
    parser.add_argument("--verbose", action="store_true",
                        help="Emit structured logs to stderr")
    args = parser.parse_args()

    configure_logging(level=logging.INFO if args.verbose else logging.WARNING)

    at = datetime.fromisoformat(args.at) if args.at else datetime.now(timezone.utc)

    try:
        snapshot = get_active_snapshot(args.marketplace, at, config_dir=args.config_dir)
        request = MonetizationRequest(
            subtotal=args.subtotal,
            currency=args.currency,
            country=args.country,
            transaction_at=at,
            seller_id=args.seller_id,
            seller_tier=args.seller_tier,
            category=args.category,
            user_type=args.user_type,
            escrow=args.escrow,
            discount=args.discount,
            payment_method=args.payment_method,
        )
        breakdown = OrderMonetizationCalculator().calculate(
            request=request, snapshot=snapshot
        )
    except (MarketplaceKernelError, FileNotFoundError, ValueError) as exc:
        code = getattr(exc, "code", type(exc).__name__)
        print(f"Error [{code}]: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(breakdown.to_dict(), indent=2, sort_keys=True))
    else:
        render(breakdown)
    return 0


if __name__ == "__main__":
    sys.exit(main())
