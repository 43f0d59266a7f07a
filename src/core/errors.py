"""Error types for Flex Shipping Ledger."""

from __future__ import annotations


class ValidationError(Exception):
    """Raised when input is rejected before anything is persisted."""


class TierValidationError(ValidationError):
    """Raised when a rate tier list is malformed."""

    def __init__(self, message: str, tier_index: int | None = None) -> None:
        super().__init__(message)
        self.tier_index = tier_index


class TierOverlapError(TierValidationError):
    """Raised when two tiers cover the same shipment volume."""


class TierGapError(TierValidationError):
    """Raised when some shipment volume is covered by no tier."""


class InvalidAmountError(ValidationError):
    """Raised when a monetary amount is not positive."""


class NotFoundError(Exception):
    """Raised when updating or deleting a record that does not exist."""

    def __init__(self, message: str, seller_id: int | None = None, year_month: str | None = None) -> None:
        super().__init__(message)
        self.seller_id = seller_id
        self.year_month = year_month


class SyncTimeoutError(Exception):
    """Raised when a month sync ran past its deadline."""


class SyncCancelledError(Exception):
    """Raised when a month sync was cancelled by its caller."""
