#!/usr/bin/env python3
"""
Approve a monetization configuration set by pinning its fingerprint.

Usage:
    python scripts/approve_config.py [config_set_directory]

If no directory is given, defaults to
marketplace_config/sets/georgy-ng-2026-v1/

The script:
  1. Assembles fragments from the directory
  2. Checks the set's status may move to approved (drafts are rejected)
  3. Validates the assembled set
  4. Writes the snapshot content hash to APPROVED_FINGERPRINT

Editing any rule fragment without re-running approval makes
get_active_snapshot() raise ConfigIntegrityError for that set.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from marketplace_config.assembler import assemble_from_directory
from marketplace_config.integrity import write_pinned_fingerprint
from marketplace_config.lifecycle import ConfigStatus, validate_transition
from marketplace_config.validator import validate_configuration


# Sets already approved or published may be re-pinned after review.
_PINNED_STATUSES = frozenset({ConfigStatus.APPROVED, ConfigStatus.PUBLISHED})


def _approvable(status: ConfigStatus) -> bool:
    return status in _PINNED_STATUSES or validate_transition(status, ConfigStatus.APPROVED)


def approve(fragment_dir: Path) -> str:
    """Assemble, validate and pin. Returns the fingerprint written."""
    print(f"Assembling fragments from: {fragment_dir}")
    config_set = assemble_from_directory(fragment_dir)
    print(f"  config_id: {config_set.config_id}")
    print(f"  version:   {config_set.version}")
    print(f"  status:    {config_set.status.value}")
    print(f"  checksum:  {config_set.checksum[:16]}...")

    if not _approvable(config_set.status):
        print(f"CANNOT APPROVE: a {config_set.status.value} set cannot move to approved")
        sys.exit(1)

    print("Validating...")
    result = validate_configuration(config_set)
    if not result.is_valid:
        print("VALIDATION FAILED:")
        for err in result.errors:
            print(f"  ERROR: {err}")
        sys.exit(1)
    for w in result.warnings:
        print(f"  WARNING: {w}")

    fingerprint = config_set.snapshot.checksum
    print(f"  fingerprint: {fingerprint}")
    pin_path = write_pinned_fingerprint(fragment_dir, fingerprint)
    print(f"Wrote {pin_path}")
    return fingerprint


def main():
    if len(sys.argv) > 1:
        target = Path(sys.argv[1])
    else:
        target = ROOT / "marketplace_config" / "sets" / "georgy-ng-2026-v1"

    if not target.is_dir():
        print(f"Error: directory not found: {target}", file=sys.stderr)
        sys.exit(1)

    approve(target)
    print("Done. Config is now pinned.")


if __name__ == "__main__":
    main()
