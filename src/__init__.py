"""Flex Shipping Ledger: tiered courier rates and monthly cost reconciliation."""

__version__ = "1.0.0"
