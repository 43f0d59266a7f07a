"""Seller-facing operations that combine the engine with storage."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol

from .errors import ValidationError
from .models import (
    Found,
    Lookup,
    MonthlyCost,
    RateConfiguration,
    RateTier,
    ServiceType,
    ShipmentDay,
    CurrentRateResult,
)
from .months import current_year_month, validate_year_month
from .reconciler import build_monthly_cost
from .tiers import default_configuration, resolve_rate, validate_tier_list

if TYPE_CHECKING:
    from src.db.repository import Repository

    from .config import Settings

logger = logging.getLogger(__name__)


class OrderSource(Protocol):
    """Where monthly Flex order counts come from."""

    def count_orders(self, seller_id: int, year_month: str) -> int: ...

    def order_details(self, seller_id: int, year_month: str) -> list[ShipmentDay]: ...


class RateConfigurationService:
    """Reads and saves courier rate configurations."""

    def __init__(self, settings: Settings, repo: Repository, orders: OrderSource | None = None) -> None:
        self.settings = settings
        self.repo = repo
        self.orders = orders or repo

    def get(self, seller_id: int) -> Lookup[RateConfiguration]:
        return self.repo.get_rate_configuration(seller_id)

    def save(
        self,
        seller_id: int,
        tiers: Iterable[RateTier],
        special_zone_surcharge: Decimal,
        oversize_surcharge: Decimal = Decimal("0"),
        default_service_type: ServiceType | str = ServiceType.SAME_DAY,
        special_zone_location_ids: Iterable[str] = (),
        is_active: bool = True,
    ) -> RateConfiguration:
        """Validate and store a seller's configuration, replacing any previous one."""
        tiers = tuple(tiers)
        validate_tier_list(tiers)

        if special_zone_surcharge < 0:
            raise ValidationError("special_zone_surcharge must not be negative")
        if oversize_surcharge < 0:
            raise ValidationError("oversize_surcharge must not be negative")

        if isinstance(default_service_type, str):
            try:
                default_service_type = ServiceType.from_string(default_service_type)
            except ValueError as e:
                raise ValidationError(str(e)) from e

        config = RateConfiguration(
            seller_id=seller_id,
            tiers=tiers,
            special_zone_surcharge=Decimal(special_zone_surcharge),
            oversize_surcharge=Decimal(oversize_surcharge),
            default_service_type=default_service_type,
            special_zone_location_ids=frozenset(str(i) for i in special_zone_location_ids),
            is_active=is_active,
        )
        saved = self.repo.save_rate_configuration(config)
        logger.info(f"Saved rate configuration for seller {seller_id} ({len(tiers)} tiers)")
        return saved

    def set_active(self, seller_id: int, is_active: bool) -> RateConfiguration:
        config = self.repo.set_rate_configuration_active(seller_id, is_active)
        logger.info(f"Rate configuration for seller {seller_id} active={is_active}")
        return config

    def effective(self, seller_id: int) -> RateConfiguration:
        """The seller's active configuration, or the defaults from settings."""
        lookup = self.get(seller_id)
        if isinstance(lookup, Found) and lookup.value.is_active:
            return lookup.value
        return default_configuration(seller_id, self.settings.rates)

    def current_rate(self, seller_id: int, year_month: str | None = None) -> CurrentRateResult:
        """Resolve the rates for a month using the freshly counted volume."""
        year_month = validate_year_month(year_month or current_year_month())
        config = self.effective(seller_id)
        shipments = self.orders.count_orders(seller_id, year_month)
        return resolve_rate(config, shipments, year_month)

    def shipments_count(self, seller_id: int, year_month: str | None = None) -> dict:
        year_month = validate_year_month(year_month or current_year_month())
        return {
            "seller_id": seller_id,
            "year_month": year_month,
            "unique_shipments": self.orders.count_orders(seller_id, year_month),
        }


class MonthlyCostService:
    """Maintains the per-month Flex cost ledger."""

    def __init__(self, settings: Settings, repo: Repository, orders: OrderSource | None = None) -> None:
        self.settings = settings
        self.repo = repo
        self.orders = orders or repo

    def list_costs(self, seller_id: int) -> list[MonthlyCost]:
        return self.repo.get_monthly_costs(seller_id)

    def get(self, seller_id: int, year_month: str) -> Lookup[MonthlyCost]:
        validate_year_month(year_month)
        return self.repo.get_monthly_cost(seller_id, year_month)

    def upsert(
        self,
        seller_id: int,
        year_month: str,
        total_with_tax: Decimal,
        notes: str | None = None,
    ) -> MonthlyCost:
        """Record a month's invoiced total, recomputing every derived field.

        The order count is read from the order source on every call, so late
        or corrected orders are picked up when the month is saved again.
        """
        validate_year_month(year_month)
        orders_count = self.orders.count_orders(seller_id, year_month)
        cost = build_monthly_cost(
            seller_id=seller_id,
            year_month=year_month,
            total_with_tax=Decimal(total_with_tax),
            orders_count=orders_count,
            tax_rate=self.settings.tax_rate,
            precision=self.settings.currency_precision,
            notes=notes or None,
        )
        saved = self.repo.upsert_monthly_cost(cost)
        logger.info(
            f"Saved monthly cost for seller {seller_id} {year_month}: "
            f"total={saved.total_cost} net={saved.net_cost} orders={orders_count}"
        )
        return saved

    def delete(self, seller_id: int, year_month: str) -> None:
        validate_year_month(year_month)
        self.repo.delete_monthly_cost(seller_id, year_month)
        logger.info(f"Deleted monthly cost for seller {seller_id} {year_month}")
