"""
Revenue share engine -- which scheme governs a seller, and the platform cut.

Precedence (first non-empty level wins):
    1. schemes specific to the seller
    2. default schemes for the seller's tier
    3. default schemes with the ``default`` tier
Within a level the latest ``effective_from`` wins, then the lowest
``scheme_id``. No scheme at any level is a configuration fault.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from marketplace_engines.rounding import percent_of
from marketplace_kernel.domain.rules import (
    RevenueShareScheme,
    ensure_utc,
    select_revenue_scheme,
)
from marketplace_kernel.exceptions import NoRevenueSchemeError
from marketplace_kernel.logging_config import get_logger

logger = get_logger("engines.revenue_share")


def resolve_revenue_scheme(
    schemes: Sequence[RevenueShareScheme],
    seller_id: str | None,
    at: datetime,
    seller_tier: str | None = None,
) -> RevenueShareScheme:
    """
    Select the single scheme governing ``seller_id`` at ``at``.

    Raises:
        NoRevenueSchemeError: Neither a seller-specific nor a default
            scheme is valid at ``at``.
    """
    scheme = select_revenue_scheme(schemes, seller_id, at, seller_tier)
    if scheme is None:
        logger.error("revenue_scheme_unresolved", extra={
            "seller_id": seller_id,
            "seller_tier": seller_tier,
            "at": ensure_utc(at).isoformat(),
            "scheme_count": len(schemes),
        })
        raise NoRevenueSchemeError(seller_id, ensure_utc(at).isoformat(), seller_tier)

    logger.debug("revenue_scheme_resolved", extra={
        "seller_id": seller_id,
        "seller_tier": seller_tier,
        "scheme_id": scheme.scheme_id,
        "rate": str(scheme.rate),
        "seller_specific": not scheme.is_default,
    })
    return scheme


def compute_platform_cut(basis: int, rate: Decimal) -> int:
    """Platform's retained share of ``basis`` minor units, rounded half-even."""
    return percent_of(basis, rate)
