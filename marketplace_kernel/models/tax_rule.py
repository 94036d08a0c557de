"""
Module: marketplace_kernel.models.tax_rule
Responsibility: ORM persistence for jurisdiction- and category-scoped tax
    rules maintained by platform administrators.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - rate and threshold are Numeric, never float.
    - valid_to NULL means the rule is open-ended.
    - applies_to is a JSON list of category / user-type tags; empty applies
      to every transaction.

Audit relevance:
    Editing a rule never alters breakdowns already issued: breakdowns are
    computed from a snapshot and stored with the payment, not recomputed.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_kernel.db.base import TrackedBase


class TaxRule(TrackedBase):
    """Tax rule record; converted to the immutable domain TaxRule on read."""

    __tablename__ = "tax_rules"

    __table_args__ = (
        Index("idx_tax_rule_country_active", "country", "is_active"),
    )

    rule_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # vat, service_tax, withholding_tax, stamp_duty, custom
    kind: Mapped[str] = mapped_column(String(30), nullable=False)

    # Percentage unless is_fixed, then major units of currency
    rate: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    threshold: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    applies_to: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # ISO 3166 alpha-2
    country: Mapped[str] = mapped_column(String(2), nullable=False)

    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    valid_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    is_compound: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    # payer or seller
    borne_by: Mapped[str] = mapped_column(String(10), nullable=False, default="payer")

    def __repr__(self) -> str:
        return f"<TaxRule {self.rule_id} {self.kind} {self.rate} {self.country}>"
