"""
MarketplaceConfigSet schema.

The human-authored, reviewable source artifact for monetization rules.
YAML fragments are parsed into these types by the loader and composed by
the assembler. The runtime artifact handed to the calculator is the
``MonetizationSnapshot`` the set carries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from marketplace_config.lifecycle import ConfigStatus
from marketplace_kernel.domain.rules import MonetizationSnapshot


@dataclass(frozen=True)
class ConfigScope:
    """Where and when a configuration set applies."""

    marketplace: str  # "*" matches every marketplace
    country: str
    currency: str  # settlement currency
    effective_from: datetime
    effective_to: datetime | None = None

    def covers(self, marketplace: str, at: datetime) -> bool:
        if self.marketplace not in ("*", marketplace):
            return False
        if at < self.effective_from:
            return False
        return self.effective_to is None or at < self.effective_to


@dataclass(frozen=True)
class MarketplaceConfigSet:
    """One versioned configuration set, assembled from its fragments."""

    config_id: str
    version: int
    checksum: str
    scope: ConfigScope
    status: ConfigStatus
    snapshot: MonetizationSnapshot
    predecessor: str | None = None
    description: str = ""
