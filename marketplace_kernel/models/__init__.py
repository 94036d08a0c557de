"""ORM models for the monetization rule store."""

from marketplace_kernel.models.payment_method import PaymentMethodConfig
from marketplace_kernel.models.revenue_share import RevenueShareScheme
from marketplace_kernel.models.tax_rule import TaxRule
