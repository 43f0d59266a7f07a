"""HTTP API for Flex Shipping Ledger."""

from .server import create_app

__all__ = ["create_app"]
