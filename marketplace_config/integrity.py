"""
Configuration integrity -- fingerprint pinning for approved sets.

An approved set directory may carry an ``APPROVED_FINGERPRINT`` file: one
line holding the SHA-256 content hash of the set's snapshot. When present,
the loaded snapshot must hash to exactly that value, so an unreviewed edit
to a tax rate or revenue share cannot reach production silently.

The pin covers rule content only, so moving a set through its lifecycle
(status, description) does not invalidate it.

No pin file means draft/dev mode: the check is skipped.
"""

from __future__ import annotations

from pathlib import Path

from marketplace_kernel.exceptions import MarketplaceKernelError

PINFILE_NAME = "APPROVED_FINGERPRINT"


class ConfigIntegrityError(MarketplaceKernelError):
    """The loaded snapshot's fingerprint differs from the approved pin."""

    code: str = "CONFIG_INTEGRITY_MISMATCH"

    def __init__(self, config_id: str, expected: str, actual: str, pin_path: Path):
        self.config_id = config_id
        self.expected = expected
        self.actual = actual
        self.pin_path = pin_path
        super().__init__(
            f"Config integrity check failed for '{config_id}': "
            f"pinned fingerprint {expected[:16]}... != "
            f"loaded fingerprint {actual[:16]}... (pin file: {pin_path})"
        )


def read_pinned_fingerprint(config_dir: Path) -> str | None:
    pin_path = config_dir / PINFILE_NAME
    if not pin_path.is_file():
        return None
    return pin_path.read_text().strip()


def write_pinned_fingerprint(config_dir: Path, fingerprint: str) -> Path:
    pin_path = config_dir / PINFILE_NAME
    pin_path.write_text(fingerprint + "\n")
    return pin_path


def verify_fingerprint_pin(config_id: str, fingerprint: str, config_dir: Path) -> None:
    """
    No-op without a pin file.

    Raises:
        ConfigIntegrityError: The pin exists and does not match.
    """
    pinned = read_pinned_fingerprint(config_dir)
    if pinned is None:
        return
    if fingerprint != pinned:
        raise ConfigIntegrityError(
            config_id=config_id,
            expected=pinned,
            actual=fingerprint,
            pin_path=config_dir / PINFILE_NAME,
        )
