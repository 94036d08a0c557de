"""
Marketplace Kernel

Foundation layer for the Georgy marketplace monetization stack:
- Typed, coded exceptions
- Structured JSON logging
- ISO 4217 currency handling with integer minor units
- Immutable tax / revenue-share / payment-method rule entities
- Read-only rule store backed by SQLAlchemy
"""

__version__ = "0.1.0"
