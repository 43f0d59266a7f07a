"""Repository pattern for database operations."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, desc, func, select

from src.core.config import get_settings
from src.core.errors import NotFoundError
from src.core.models import (
    ABSENT,
    Found,
    Lookup,
    MonthlyCost,
    RateConfiguration,
    RateTier,
    ServiceType,
    ShipmentDay,
)
from src.core.reconciler import quantize_amount

from .models import MonthlyCostDB, RateConfigurationDB, ShipmentDayDB
from .session import session_scope

logger = logging.getLogger(__name__)


class Repository:
    """Data access repository for all database operations.

    Also serves as the order source for the engine: monthly order counts and
    per-day breakdowns come from the synced shipment days.
    """

    def __init__(self, precision: int | None = None) -> None:
        """Initialize with the currency precision used to normalise amounts."""
        self.precision = get_settings().currency_precision if precision is None else precision

    def _amount(self, value: Decimal | None) -> Decimal:
        return quantize_amount(Decimal(value or 0), self.precision)

    # ==================== Rate Configurations ====================

    def get_rate_configuration(self, seller_id: int) -> Lookup[RateConfiguration]:
        """Get a seller's rate configuration."""
        with session_scope() as session:
            db_config = session.execute(
                select(RateConfigurationDB).where(RateConfigurationDB.seller_id == seller_id)
            ).scalar_one_or_none()
            if db_config is None:
                return ABSENT
            return Found(self._db_to_rate_configuration(db_config))

    def save_rate_configuration(self, config: RateConfiguration) -> RateConfiguration:
        """Create or fully replace a seller's rate configuration."""
        with session_scope() as session:
            db_config = session.execute(
                select(RateConfigurationDB).where(RateConfigurationDB.seller_id == config.seller_id)
            ).scalar_one_or_none()

            if db_config is None:
                db_config = RateConfigurationDB(seller_id=config.seller_id)
                session.add(db_config)

            db_config.rate_tiers_json = json.dumps([t.to_dict() for t in config.tiers])
            db_config.special_zone_surcharge = config.special_zone_surcharge
            db_config.oversize_surcharge = config.oversize_surcharge
            db_config.default_service_type = config.default_service_type.value
            db_config.special_zone_location_ids_json = json.dumps(
                sorted(config.special_zone_location_ids)
            )
            db_config.is_active = config.is_active
            db_config.updated_at = datetime.now()

            session.flush()
            return self._db_to_rate_configuration(db_config)

    def set_rate_configuration_active(self, seller_id: int, is_active: bool) -> RateConfiguration:
        """Flip the active flag of a seller's configuration."""
        with session_scope() as session:
            db_config = session.execute(
                select(RateConfigurationDB).where(RateConfigurationDB.seller_id == seller_id)
            ).scalar_one_or_none()
            if db_config is None:
                raise NotFoundError(
                    f"No rate configuration for seller {seller_id}", seller_id=seller_id
                )
            db_config.is_active = is_active
            db_config.updated_at = datetime.now()
            session.flush()
            return self._db_to_rate_configuration(db_config)

    def _db_to_rate_configuration(self, db: RateConfigurationDB) -> RateConfiguration:
        """Convert database model to domain model."""
        return RateConfiguration(
            id=db.id,
            seller_id=db.seller_id,
            tiers=tuple(RateTier.from_dict(t) for t in json.loads(db.rate_tiers_json or "[]")),
            special_zone_surcharge=self._amount(db.special_zone_surcharge),
            oversize_surcharge=self._amount(db.oversize_surcharge),
            default_service_type=ServiceType.from_string(db.default_service_type),
            special_zone_location_ids=frozenset(
                json.loads(db.special_zone_location_ids_json or "[]")
            ),
            is_active=db.is_active,
            created_at=db.created_at,
            updated_at=db.updated_at,
        )

    # ==================== Monthly Costs ====================

    def get_monthly_costs(self, seller_id: int) -> list[MonthlyCost]:
        """Get all monthly costs for a seller, newest month first."""
        with session_scope() as session:
            query = (
                select(MonthlyCostDB)
                .where(MonthlyCostDB.seller_id == seller_id)
                .order_by(desc(MonthlyCostDB.year_month))
            )
            result = session.execute(query).scalars().all()
            return [self._db_to_monthly_cost(db) for db in result]

    def get_monthly_cost(self, seller_id: int, year_month: str) -> Lookup[MonthlyCost]:
        """Get the cost recorded for one month."""
        with session_scope() as session:
            db_cost = session.execute(
                select(MonthlyCostDB).where(
                    MonthlyCostDB.seller_id == seller_id,
                    MonthlyCostDB.year_month == year_month,
                )
            ).scalar_one_or_none()
            if db_cost is None:
                return ABSENT
            return Found(self._db_to_monthly_cost(db_cost))

    def upsert_monthly_cost(self, cost: MonthlyCost) -> MonthlyCost:
        """Insert or replace the cost for ``(seller_id, year_month)``."""
        with session_scope() as session:
            db_cost = session.execute(
                select(MonthlyCostDB).where(
                    MonthlyCostDB.seller_id == cost.seller_id,
                    MonthlyCostDB.year_month == cost.year_month,
                )
            ).scalar_one_or_none()

            if db_cost is None:
                db_cost = MonthlyCostDB(seller_id=cost.seller_id, year_month=cost.year_month)
                session.add(db_cost)

            db_cost.total_cost = cost.total_cost
            db_cost.net_cost = cost.net_cost
            db_cost.tax_amount = cost.tax_amount
            db_cost.orders_count = cost.orders_count
            db_cost.cost_per_order = cost.cost_per_order
            db_cost.notes = cost.notes
            db_cost.updated_at = datetime.now()

            session.flush()
            return self._db_to_monthly_cost(db_cost)

    def delete_monthly_cost(self, seller_id: int, year_month: str) -> None:
        """Permanently delete the cost for one month."""
        with session_scope() as session:
            result = session.execute(
                delete(MonthlyCostDB).where(
                    MonthlyCostDB.seller_id == seller_id,
                    MonthlyCostDB.year_month == year_month,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError(
                    f"No monthly cost for seller {seller_id} in {year_month}",
                    seller_id=seller_id,
                    year_month=year_month,
                )

    def _db_to_monthly_cost(self, db: MonthlyCostDB) -> MonthlyCost:
        """Convert database model to domain model."""
        return MonthlyCost(
            id=db.id,
            seller_id=db.seller_id,
            year_month=db.year_month,
            total_cost=self._amount(db.total_cost),
            net_cost=self._amount(db.net_cost),
            tax_amount=self._amount(db.tax_amount),
            orders_count=db.orders_count,
            cost_per_order=self._amount(db.cost_per_order),
            notes=db.notes,
            created_at=db.created_at,
            updated_at=db.updated_at,
        )

    # ==================== Shipment Days ====================

    def replace_shipment_days(
        self, seller_id: int, year_month: str, days: Sequence[ShipmentDay]
    ) -> int:
        """Replace a month's synced shipment counts in a single transaction."""
        with session_scope() as session:
            session.execute(
                delete(ShipmentDayDB).where(
                    ShipmentDayDB.seller_id == seller_id,
                    ShipmentDayDB.year_month == year_month,
                )
            )
            synced_at = datetime.now()
            for day in days:
                session.add(
                    ShipmentDayDB(
                        seller_id=seller_id,
                        year_month=year_month,
                        ship_date=day.day,
                        shipments_count=day.synced,
                        synced_at=synced_at,
                    )
                )
            logger.debug(f"Stored {len(days)} shipment days for seller {seller_id} {year_month}")
            return len(days)

    def count_orders(self, seller_id: int, year_month: str) -> int:
        """Unique Flex shipments synced for a month."""
        with session_scope() as session:
            total = session.execute(
                select(func.sum(ShipmentDayDB.shipments_count)).where(
                    ShipmentDayDB.seller_id == seller_id,
                    ShipmentDayDB.year_month == year_month,
                )
            ).scalar()
            return int(total or 0)

    def order_details(self, seller_id: int, year_month: str) -> list[ShipmentDay]:
        """Per-day shipment counts for a month, oldest first."""
        with session_scope() as session:
            query = (
                select(ShipmentDayDB)
                .where(
                    ShipmentDayDB.seller_id == seller_id,
                    ShipmentDayDB.year_month == year_month,
                )
                .order_by(ShipmentDayDB.ship_date)
            )
            result = session.execute(query).scalars().all()
            return [ShipmentDay(day=db.ship_date, synced=db.shipments_count) for db in result]

    def get_last_synced_at(self, seller_id: int, year_month: str) -> datetime | None:
        """When the month was last synced, if ever."""
        with session_scope() as session:
            return session.execute(
                select(func.max(ShipmentDayDB.synced_at)).where(
                    ShipmentDayDB.seller_id == seller_id,
                    ShipmentDayDB.year_month == year_month,
                )
            ).scalar()
