"""
Module: marketplace_kernel.models.payment_method
Responsibility: ORM persistence for payment method fees and limits.
Architecture position: Kernel > Models. May import from db/base.py only.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace_kernel.db.base import TrackedBase


class PaymentMethodConfig(TrackedBase):
    """Payment method record; fixed fee and limits are major units of currency."""

    __tablename__ = "payment_method_configs"

    method: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    fee_percentage: Mapped[Decimal | None] = mapped_column(Numeric(9, 4), nullable=True)

    fee_fixed: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    min_amount: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    max_amount: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    def __repr__(self) -> str:
        return f"<PaymentMethodConfig {self.method} enabled={self.enabled}>"
