"""
marketplace_config -- single public entrypoint for monetization configuration.

Responsibility:
    ``get_active_snapshot()`` is the only way runtime code obtains the rule
    snapshot the calculator reads. YAML loading is internal tooling.

Architecture position:
    Configuration -- above ``marketplace_kernel``, below
    ``marketplace_services``. The kernel MUST NEVER import from here.

Invariants enforced:
    - Validation: a set with errors is never returned.
    - Fingerprint pinning: when APPROVED_FINGERPRINT exists, the snapshot
      content hash must match it.
    - Determinism: the same fragments always produce the same snapshot
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- no set matches the marketplace and time.
    - ``ValueError`` -- validation failures.
    - ``AssemblyError`` -- a set directory is incomplete.
    - ``ConfigIntegrityError`` -- fingerprint mismatch against the pin.

Every successful call emits a ``MARKETPLACE_CONFIG_TRACE`` record naming
the set, version and checksum, tying each breakdown back to the exact
rules that produced it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from marketplace_config.assembler import AssemblyError, assemble_from_directory
from marketplace_config.integrity import ConfigIntegrityError, verify_fingerprint_pin
from marketplace_config.lifecycle import ConfigStatus
from marketplace_config.loader import load_yaml_file, parse_scope
from marketplace_config.schema import MarketplaceConfigSet
from marketplace_config.validator import validate_configuration
from marketplace_kernel.domain.rules import MonetizationSnapshot, ensure_utc

_logger = logging.getLogger("marketplace_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

__all__ = [
    "AssemblyError",
    "ConfigIntegrityError",
    "ConfigStatus",
    "MarketplaceConfigSet",
    "get_active_config_set",
    "get_active_snapshot",
]


def get_active_config_set(
    marketplace: str,
    as_of: datetime,
    config_dir: Path | None = None,
) -> MarketplaceConfigSet:
    """Select, validate and verify the configuration set in force.

    Args:
        marketplace: Marketplace identifier matched against set scopes.
        as_of: Time the set must be in force at (naive means UTC).
        config_dir: Override for the sets directory; defaults to
            ``marketplace_config/sets/``.

    Raises:
        FileNotFoundError: No set matches.
        ValueError: The selected set fails validation.
        ConfigIntegrityError: The selected set's pin does not match.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    at = ensure_utc(as_of)

    config_set, fragment_dir = _find_matching_config(sets_dir, marketplace, at)

    validation = validate_configuration(config_set)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "config_set_id": config_set.config_id,
            "warning": warning,
        })
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    snapshot = config_set.snapshot
    _logger.info(
        "MARKETPLACE_CONFIG_TRACE",
        extra={
            "trace_type": "MARKETPLACE_CONFIG_TRACE",
            "config_set_id": config_set.config_id,
            "config_set_version": config_set.version,
            "status": config_set.status.value,
            "checksum": config_set.checksum,
            "snapshot_checksum": snapshot.checksum,
            "scope_marketplace": config_set.scope.marketplace,
            "scope_country": config_set.scope.country,
            "tax_rule_count": len(snapshot.tax_rules),
            "revenue_scheme_count": len(snapshot.revenue_schemes),
            "payment_method_count": len(snapshot.payment_methods),
        },
    )

    verify_fingerprint_pin(
        config_id=config_set.config_id,
        fingerprint=snapshot.checksum,
        config_dir=fragment_dir,
    )
    return config_set


def get_active_snapshot(
    marketplace: str,
    as_of: datetime,
    config_dir: Path | None = None,
) -> MonetizationSnapshot:
    """The rule snapshot in force for ``marketplace`` at ``as_of``.

    See ``get_active_config_set`` for the failure modes.
    """
    return get_active_config_set(marketplace, as_of, config_dir).snapshot


def _find_matching_config(
    sets_dir: Path, marketplace: str, at: datetime
) -> tuple[MarketplaceConfigSet, Path]:
    """Scan ``sets_dir`` for the set whose scope covers ``marketplace`` at ``at``.

    Only root.yaml is read while choosing; the winner alone is assembled.
    Superseded and draft sets are never selected. Among the remaining
    matches PUBLISHED wins, then the highest version.
    """
    if not sets_dir.is_dir():
        raise FileNotFoundError(f"Configuration sets directory not found: {sets_dir}")

    candidates: list[tuple[ConfigStatus, int, Path]] = []
    for subdir in sorted(sets_dir.iterdir()):
        root_path = subdir / "root.yaml"
        if not subdir.is_dir() or not root_path.exists():
            continue
        root_data = load_yaml_file(root_path)
        status = ConfigStatus(root_data.get("status", "draft"))
        if status in (ConfigStatus.DRAFT, ConfigStatus.SUPERSEDED):
            continue
        if parse_scope(root_data["scope"]).covers(marketplace, at):
            candidates.append((status, int(root_data.get("version", 1)), subdir))

    if not candidates:
        raise FileNotFoundError(
            f"No configuration set found for marketplace='{marketplace}' "
            f"as_of={at.isoformat()} in {sets_dir}"
        )

    published = [c for c in candidates if c[0] is ConfigStatus.PUBLISHED]
    _, _, fragment_dir = max(published or candidates, key=lambda c: c[1])
    return assemble_from_directory(fragment_dir), fragment_dir
