"""Core data models for Flex Shipping Ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ServiceType(str, Enum):
    """Courier service levels."""

    SAME_DAY = "same_day"  # Same day, metropolitan area
    NEXT_DAY = "next_day"  # Next day, regional

    @classmethod
    def from_string(cls, value: str) -> "ServiceType":
        """Convert string to ServiceType, accepting the marketplace aliases."""
        value_lower = value.strip().lower()
        aliases = {
            "same_day_rm": cls.SAME_DAY,
            "next_day_v_region": cls.NEXT_DAY,
        }
        if value_lower in aliases:
            return aliases[value_lower]
        for service in cls:
            if service.value == value_lower:
                return service
        raise ValueError(f"Unknown service type: {value}")

    @classmethod
    def values(cls) -> list[str]:
        """Get list of service type values."""
        return [s.value for s in cls]


class SyncStatus(str, Enum):
    """Outcome of a month sync."""

    COMPLETE = "complete"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Found(Generic[T]):
    """A read that found its record."""

    value: T


@dataclass(frozen=True)
class Absent:
    """A read that found nothing."""


ABSENT = Absent()

Lookup = Union[Found[T], Absent]


@dataclass(frozen=True)
class RateTier:
    """Shipment volume range mapped to per-shipment rates (tax exclusive)."""

    min_shipments: int
    max_shipments: int | None
    same_day_rate: Decimal
    next_day_rate: Decimal

    @property
    def is_unbounded(self) -> bool:
        return self.max_shipments is None

    def contains(self, shipments_count: int) -> bool:
        """Check whether a monthly volume falls inside this tier."""
        if shipments_count < self.min_shipments:
            return False
        return self.max_shipments is None or shipments_count <= self.max_shipments

    def rate_for(self, service_type: ServiceType) -> Decimal:
        if service_type == ServiceType.SAME_DAY:
            return self.same_day_rate
        return self.next_day_rate

    @property
    def label(self) -> str:
        """Human readable range, e.g. "100 - 200" or "More than 1000"."""
        if self.max_shipments is None:
            return f"More than {self.min_shipments - 1}"
        return f"{self.min_shipments} - {self.max_shipments}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_shipments": self.min_shipments,
            "max_shipments": self.max_shipments,
            "same_day_rate": str(self.same_day_rate),
            "next_day_rate": str(self.next_day_rate),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RateTier":
        max_shipments = data.get("max_shipments")
        return cls(
            min_shipments=int(data["min_shipments"]),
            max_shipments=int(max_shipments) if max_shipments is not None else None,
            same_day_rate=Decimal(str(data["same_day_rate"])),
            next_day_rate=Decimal(str(data["next_day_rate"])),
        )


@dataclass
class RateConfiguration:
    """Courier rate configuration for one seller."""

    seller_id: int
    tiers: tuple[RateTier, ...] = ()
    special_zone_surcharge: Decimal = Decimal("0")
    oversize_surcharge: Decimal = Decimal("0")
    default_service_type: ServiceType = ServiceType.SAME_DAY
    special_zone_location_ids: frozenset[str] = frozenset()
    is_active: bool = True
    id: int | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        """Freeze collection fields so snapshots cannot be mutated in place."""
        self.tiers = tuple(self.tiers)
        self.special_zone_location_ids = frozenset(self.special_zone_location_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "rate_tiers": [t.to_dict() for t in self.tiers],
            "special_zone_surcharge": str(self.special_zone_surcharge),
            "oversize_surcharge": str(self.oversize_surcharge),
            "default_service_type": self.default_service_type.value,
            "special_zone_location_ids": sorted(self.special_zone_location_ids),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class CurrentRateResult:
    """Rates that apply to a seller for a month's shipment volume."""

    shipments_count: int
    current_tier: RateTier | None
    same_day_rate: Decimal
    next_day_rate: Decimal
    year_month: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "shipments_count": self.shipments_count,
            "current_tier": self.current_tier.to_dict() if self.current_tier else None,
            "same_day_rate": str(self.same_day_rate),
            "next_day_rate": str(self.next_day_rate),
            "year_month": self.year_month,
        }


@dataclass(frozen=True)
class Reconciliation:
    """Net / tax / per-order breakdown of a tax-inclusive total."""

    net: Decimal
    tax: Decimal
    per_order: Decimal


@dataclass
class MonthlyCost:
    """Recorded Flex courier cost for one seller and month."""

    seller_id: int
    year_month: str
    total_cost: Decimal  # Tax inclusive, as invoiced
    net_cost: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    orders_count: int = 0
    cost_per_order: Decimal = Decimal("0")
    notes: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "year_month": self.year_month,
            "net_cost": str(self.net_cost),
            "tax_amount": str(self.tax_amount),
            "total_cost": str(self.total_cost),
            "orders_count": self.orders_count,
            "cost_per_order": str(self.cost_per_order),
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class LedgerTotals:
    """Sums across a seller's monthly costs."""

    net_cost: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    orders_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "net_cost": str(self.net_cost),
            "tax_amount": str(self.tax_amount),
            "total_cost": str(self.total_cost),
            "orders_count": self.orders_count,
        }


@dataclass(frozen=True)
class ShipmentDay:
    """Unique Flex shipments a seller dispatched on one day."""

    day: date
    synced: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.day.isoformat(), "synced": self.synced}


@dataclass
class SyncMonthResult:
    """Outcome of synchronising one month of Flex shipments."""

    seller_id: int
    year_month: str
    status: SyncStatus
    details: list[ShipmentDay] = field(default_factory=list)
    committed: bool = False
    message: str = ""

    @property
    def total_synced(self) -> int:
        return sum(d.synced for d in self.details)

    @property
    def days_processed(self) -> int:
        return len(self.details)

    @property
    def is_complete(self) -> bool:
        return self.status == SyncStatus.COMPLETE

    def raise_for_status(self) -> None:
        """Raise if the sync did not finish."""
        from .errors import SyncCancelledError, SyncTimeoutError

        if self.status == SyncStatus.TIMED_OUT:
            raise SyncTimeoutError(self.message)
        if self.status == SyncStatus.CANCELLED:
            raise SyncCancelledError(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seller_id": self.seller_id,
            "year_month": self.year_month,
            "status": self.status.value,
            "total_synced": self.total_synced,
            "days_processed": self.days_processed,
            "committed": self.committed,
            "message": self.message,
            "details": [d.to_dict() for d in self.details],
        }
