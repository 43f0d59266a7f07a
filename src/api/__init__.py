"""API clients for Flex Shipping Ledger."""

from .marketplace import MarketplaceClient, MarketplaceRateLimitError

__all__ = [
    "MarketplaceClient",
    "MarketplaceRateLimitError",
]
