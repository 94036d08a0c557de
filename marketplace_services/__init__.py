"""
marketplace_services -- Imperative shell over the pure engines.

Services own I/O (sessions, clocks); engines stay pure.
"""

from marketplace_services.monetization_service import MonetizationService
from marketplace_services.rule_admin_service import RuleAdminService

__all__ = ["MonetizationService", "RuleAdminService"]
