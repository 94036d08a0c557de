"""
marketplace_config.assembler -- composes YAML fragments into one config set.

Administrators edit small fragments; this module composes a directory of
them into a single ``MarketplaceConfigSet`` whose ``snapshot`` is what the
calculator reads.

Fragment structure::

    sets/georgy-ng-2026-v1/
    +-- root.yaml              # Identity, scope, status, settings
    +-- currencies.yaml        # Transaction currencies
    +-- tax_rules.yaml         # Tax rules
    +-- revenue_shares.yaml    # Revenue share schemes
    +-- payment_methods.yaml   # Payment method fees and limits (optional)
    +-- exchange_rates.yaml    # Rates for fixed amounts (optional)

Invariants enforced:
    - ``root.yaml``, ``currencies.yaml``, ``tax_rules.yaml`` and
      ``revenue_shares.yaml`` must exist.
    - The set checksum covers every fragment's raw contents, so any edit
      changes it.

Failure modes:
    - ``AssemblyError`` -- directory or required fragment missing.
    - ``KeyError`` / ``ValueError`` / ``yaml.YAMLError`` from the loader.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

from marketplace_config.lifecycle import ConfigStatus
from marketplace_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_currency,
    parse_exchange_rate,
    parse_payment_method,
    parse_revenue_scheme,
    parse_scope,
    parse_tax_rule,
)
from marketplace_config.schema import MarketplaceConfigSet
from marketplace_kernel.domain.rules import MonetizationSnapshot, RevenueShareBasis
from marketplace_kernel.exceptions import MarketplaceKernelError
from marketplace_kernel.logging_config import get_logger

logger = get_logger("config.assembler")

_REQUIRED_FRAGMENTS = ("currencies.yaml", "tax_rules.yaml", "revenue_shares.yaml")


class AssemblyError(MarketplaceKernelError):
    """A fragment directory is missing or incomplete."""

    code: str = "ASSEMBLY_FAILED"


def _load_fragment(fragment_dir: Path, name: str) -> dict[str, Any]:
    path = fragment_dir / name
    if not path.exists():
        if name in _REQUIRED_FRAGMENTS:
            raise AssemblyError(f"{name} not found in {fragment_dir}")
        return {}
    return load_yaml_file(path)


def assemble_from_directory(fragment_dir: Path) -> MarketplaceConfigSet:
    """Compose one fragment directory into a MarketplaceConfigSet.

    Args:
        fragment_dir: e.g. ``marketplace_config/sets/georgy-ng-2026-v1/``.

    Raises:
        AssemblyError: If the directory or a required fragment is missing.
    """
    if not fragment_dir.is_dir():
        raise AssemblyError(f"Fragment directory not found: {fragment_dir}")

    root_path = fragment_dir / "root.yaml"
    if not root_path.exists():
        raise AssemblyError(f"root.yaml not found in {fragment_dir}")
    root_data = load_yaml_file(root_path)

    fragments = {
        name: _load_fragment(fragment_dir, name)
        for name in (
            "currencies.yaml",
            "tax_rules.yaml",
            "revenue_shares.yaml",
            "payment_methods.yaml",
            "exchange_rates.yaml",
        )
    }

    settings = root_data.get("settings", {})
    config_id = root_data["config_id"]
    version = int(root_data.get("version", 1))

    snapshot = MonetizationSnapshot(
        currencies=tuple(
            parse_currency(c) for c in fragments["currencies.yaml"].get("currencies", [])
        ),
        tax_rules=tuple(
            parse_tax_rule(r) for r in fragments["tax_rules.yaml"].get("tax_rules", [])
        ),
        revenue_schemes=tuple(
            parse_revenue_scheme(s)
            for s in fragments["revenue_shares.yaml"].get("revenue_shares", [])
        ),
        payment_methods=tuple(
            parse_payment_method(m)
            for m in fragments["payment_methods.yaml"].get("payment_methods", [])
        ),
        exchange_rates=tuple(
            parse_exchange_rate(r)
            for r in fragments["exchange_rates.yaml"].get("exchange_rates", [])
        ),
        revenue_share_basis=RevenueShareBasis(
            settings.get("revenue_share_basis", RevenueShareBasis.SUBTOTAL.value)
        ),
        snapshot_id=f"{config_id}@v{version}",
    )
    snapshot = replace(snapshot, checksum=snapshot.content_hash())

    checksum = compute_checksum({"root": root_data, **fragments})

    # INVARIANT: checksum must be a SHA-256 hex digest.
    assert checksum and len(checksum) == 64, (
        f"Checksum must be a 64-char SHA-256 hex digest, got {checksum!r}"
    )

    config_set = MarketplaceConfigSet(
        config_id=config_id,
        version=version,
        checksum=checksum,
        scope=parse_scope(root_data["scope"]),
        status=ConfigStatus(root_data.get("status", "draft")),
        snapshot=snapshot,
        predecessor=root_data.get("predecessor"),
        description=root_data.get("description", ""),
    )
    logger.debug("config_set_assembled", extra={
        "config_id": config_id,
        "version": version,
        "checksum": checksum,
        "fragment_dir": str(fragment_dir),
    })
    return config_set
