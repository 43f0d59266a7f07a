"""Core business logic for Flex Shipping Ledger."""

from .config import Settings, get_settings
from .errors import (
    InvalidAmountError,
    NotFoundError,
    SyncCancelledError,
    SyncTimeoutError,
    TierGapError,
    TierOverlapError,
    TierValidationError,
    ValidationError,
)
from .models import (
    ABSENT,
    Absent,
    CurrentRateResult,
    Found,
    MonthlyCost,
    RateConfiguration,
    RateTier,
    Reconciliation,
    ServiceType,
    ShipmentDay,
    SyncMonthResult,
    SyncStatus,
)
from .reconciler import ledger_totals, reconcile
from .services import MonthlyCostService, RateConfigurationService
from .sync import MonthSync
from .tiers import quote_shipment, resolve_rate, validate_tier_list

__all__ = [
    "Settings",
    "get_settings",
    "ValidationError",
    "TierValidationError",
    "TierOverlapError",
    "TierGapError",
    "InvalidAmountError",
    "NotFoundError",
    "SyncTimeoutError",
    "SyncCancelledError",
    "ABSENT",
    "Absent",
    "Found",
    "RateTier",
    "RateConfiguration",
    "CurrentRateResult",
    "Reconciliation",
    "MonthlyCost",
    "ServiceType",
    "ShipmentDay",
    "SyncMonthResult",
    "SyncStatus",
    "resolve_rate",
    "validate_tier_list",
    "quote_shipment",
    "reconcile",
    "ledger_totals",
    "RateConfigurationService",
    "MonthlyCostService",
    "MonthSync",
]
