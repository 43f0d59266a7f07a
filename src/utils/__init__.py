"""Utility modules for Flex Shipping Ledger."""

from .export import Exporter
from .mock_data import get_mock_orders_response

__all__ = [
    "get_mock_orders_response",
    "Exporter",
]
