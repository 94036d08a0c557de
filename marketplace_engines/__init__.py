"""
Module: marketplace_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines. This is
    the import surface for marketplace_services and scripts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import marketplace_kernel domain, exceptions, logging and utils.
    MUST NOT import marketplace_config, marketplace_services or
    marketplace_kernel.db/selectors.

Invariants enforced:
    - Purity: engines never read the clock. Transaction time is a parameter.
    - Integer minor units for every breakdown amount; Decimal (never
      float) for rates and configured major-unit values.
    - Determinism: identical inputs produce identical outputs.

Usage:
    from marketplace_engines import MonetizationRequest, OrderMonetizationCalculator
    from marketplace_engines import build_payout_batches, summarize_breakdowns
"""

from marketplace_engines.fees import (
    FeeLine,
    check_amount_limits,
    compute_payment_method_fee,
    resolve_payment_method,
)
from marketplace_engines.monetization import (
    MonetizationRequest,
    OrderMonetizationCalculator,
    PaymentBreakdown,
    verify_breakdown,
)
from marketplace_engines.payment import (
    EscrowStatus,
    PaymentAuthorization,
    Refund,
    authorize_payment,
    refund_payment,
    release_escrow,
)
from marketplace_engines.payout import (
    PayoutBatch,
    PayoutItem,
    build_payout_batches,
    next_payout_date,
)
from marketplace_engines.reporting import FinancialSummary, summarize_breakdowns
from marketplace_engines.revenue_share import (
    compute_platform_cut,
    resolve_revenue_scheme,
)
from marketplace_engines.rounding import from_minor_units, percent_of, to_minor_units
from marketplace_engines.store import RuleStore, SnapshotRuleStore
from marketplace_engines.tax import (
    TaxLine,
    compute_tax_lines,
    select_applicable_tax_rules,
)
from marketplace_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Fees
    "FeeLine",
    "check_amount_limits",
    "compute_payment_method_fee",
    "resolve_payment_method",
    # Monetization
    "MonetizationRequest",
    "OrderMonetizationCalculator",
    "PaymentBreakdown",
    "verify_breakdown",
    # Payment
    "EscrowStatus",
    "PaymentAuthorization",
    "Refund",
    "authorize_payment",
    "refund_payment",
    "release_escrow",
    # Payout
    "PayoutBatch",
    "PayoutItem",
    "build_payout_batches",
    "next_payout_date",
    # Reporting
    "FinancialSummary",
    "summarize_breakdowns",
    # Revenue share
    "compute_platform_cut",
    "resolve_revenue_scheme",
    # Rounding
    "from_minor_units",
    "percent_of",
    "to_minor_units",
    # Rule store
    "RuleStore",
    "SnapshotRuleStore",
    # Tax
    "TaxLine",
    "compute_tax_lines",
    "select_applicable_tax_rules",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
