"""
Module: marketplace_kernel.models.revenue_share
Responsibility: ORM persistence for revenue share schemes (the platform cut).
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - seller_id NULL marks a default scheme for the tier.
    - rate is a Numeric percentage in 0..100.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_kernel.db.base import TrackedBase


class RevenueShareScheme(TrackedBase):
    """Revenue share record; converted to the domain scheme on read."""

    __tablename__ = "revenue_share_schemes"

    __table_args__ = (
        Index("idx_revenue_scheme_seller", "seller_id"),
        Index("idx_revenue_scheme_tier", "tier"),
    )

    scheme_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    seller_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # default, premium, vip
    tier: Mapped[str] = mapped_column(String(30), nullable=False, default="default")

    rate: Mapped[Decimal] = mapped_column(Numeric(9, 4), nullable=False)

    effective_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    effective_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        owner = self.seller_id or f"tier:{self.tier}"
        return f"<RevenueShareScheme {self.scheme_id} {owner} {self.rate}%>"
